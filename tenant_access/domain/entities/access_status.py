"""The resolved access status of a tenant at one instant."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class StatusCode(str, Enum):
    """Closed set of access outcomes."""

    ACTIVE_SUBSCRIPTION = "active_subscription"
    TRIAL_ACTIVE = "trial_active"
    TRIAL_EXPIRED = "trial_expired"
    SUBSCRIPTION_EXPIRED = "subscription_expired"
    SUBSCRIPTION_CANCELLED = "subscription_cancelled"
    NO_SUBSCRIPTION = "no_subscription"


GRANTING_STATUS_CODES = frozenset({StatusCode.ACTIVE_SUBSCRIPTION, StatusCode.TRIAL_ACTIVE})

ENFORCED_STATUS_CODES = frozenset(
    {
        StatusCode.SUBSCRIPTION_EXPIRED,
        StatusCode.SUBSCRIPTION_CANCELLED,
        StatusCode.TRIAL_EXPIRED,
    }
)


@dataclass(frozen=True)
class ResolvedStatus:
    """Transient, never persisted."""

    status_code: StatusCode
    message: str
    has_active_subscription: bool = False
    is_in_trial: bool = False
    trial_days_remaining: Optional[int] = None
    subscription_end_date: Optional[int] = None
    subscription_expired: bool = False
    trial_expired: bool = False
    subscription_cancelled: bool = False

    def __post_init__(self):
        if self.has_active_subscription and self.subscription_expired:
            raise ValueError("A status cannot be both active and expired")
        if self.trial_days_remaining is not None and self.status_code != StatusCode.TRIAL_ACTIVE:
            raise ValueError("trial_days_remaining is only set for an active trial")

    @property
    def grants_access(self) -> bool:
        return self.status_code in GRANTING_STATUS_CODES

    @property
    def is_enforced(self) -> bool:
        return self.status_code in ENFORCED_STATUS_CODES

    def to_dict(self) -> Dict[str, Any]:
        return {
            "statusCode": self.status_code.value,
            "hasActiveSubscription": self.has_active_subscription,
            "isInTrial": self.is_in_trial,
            "trialDaysRemaining": self.trial_days_remaining,
            "subscriptionEndDate": self.subscription_end_date,
            "subscriptionExpired": self.subscription_expired,
            "trialExpired": self.trial_expired,
            "subscriptionCancelled": self.subscription_cancelled,
            "message": self.message,
        }


__all__ = [
    "ENFORCED_STATUS_CODES",
    "GRANTING_STATUS_CODES",
    "ResolvedStatus",
    "StatusCode",
]
