"""Subscription records and the plans they are bought against."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SubscriptionStatus(str, Enum):
    """Lifecycle state of a subscription record."""

    ACTIVE = "active"
    PENDING = "pending"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class BillingCycle(str, Enum):
    """Billing cycles a plan may declare."""

    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    BIANNUALLY = "biannually"
    ANNUALLY = "annually"
    YEARLY = "yearly"


@dataclass
class SubscriptionRecord:
    """One paid (or pending) subscription of a tenant to a plan."""

    id: Optional[str]
    tenant_id: str
    plan_id: str
    start_date: int
    end_date: int
    status: str = SubscriptionStatus.PENDING.value
    auto_renew: bool = False
    cancel_date: Optional[int] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
    price: Optional[float] = None
    currency: Optional[str] = None
    billing_cycle: Optional[str] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None

    def is_active_at(self, now: int) -> bool:
        return self.status == SubscriptionStatus.ACTIVE.value and self.end_date > now

    def is_nominally_active(self) -> bool:
        return self.status == SubscriptionStatus.ACTIVE.value

    def is_cancelled(self) -> bool:
        return self.status == SubscriptionStatus.CANCELLED.value

    def is_expired_at(self, now: int) -> bool:
        """Explicitly expired, or past its end date without being active."""
        if self.status == SubscriptionStatus.EXPIRED.value:
            return True
        return self.end_date < now and self.status != SubscriptionStatus.ACTIVE.value

    def cancellation_instant(self) -> int:
        return self.cancel_date if self.cancel_date is not None else self.end_date

    def cancel(self, now: int) -> None:
        self.status = SubscriptionStatus.CANCELLED.value
        self.cancel_date = now
        self.updated_at = now


@dataclass
class SubscriptionPlan:
    """A purchasable plan."""

    id: str
    name: str
    billing_cycle: str = BillingCycle.MONTHLY.value
    price: float = 0.0
    currency: str = "EUR"
    active: bool = True
    description: Optional[str] = None


__all__ = [
    "BillingCycle",
    "SubscriptionPlan",
    "SubscriptionRecord",
    "SubscriptionStatus",
]
