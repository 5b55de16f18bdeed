"""Pure domain representation of tenant aggregates."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from tenant_access.domain.value_objects import TrialProvenance


class TenantStatus(str, Enum):
    """Well-known lifecycle labels. The stored field is free text."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"


@dataclass
class TenantDraft:
    """Input for creating a tenant; trial fields are stamped by the engine."""

    name: str
    email: Optional[str] = None
    contact_name: Optional[str] = None
    phone: Optional[str] = None
    business_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Tenant:
    """Aggregate root representing a business account."""

    id: str
    name: str
    created_at: int
    is_in_trial: bool = False
    trial_start_date: Optional[int] = None
    trial_end_date: Optional[int] = None
    status: str = TenantStatus.PENDING.value
    email: Optional[str] = None
    contact_name: Optional[str] = None
    phone: Optional[str] = None
    business_id: Optional[str] = None
    updated_at: Optional[int] = None
    trial_info: Optional[TrialProvenance] = None
    trial_expired_at: Optional[int] = None
    subscription_plan_id: Optional[str] = None
    subscription_start_date: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def has_valid_trial(self, now: int) -> bool:
        """Trial flag set and the end date is missing or still ahead."""
        if not self.is_in_trial:
            return False
        return self.trial_end_date is None or self.trial_end_date > now

    def has_expired_trial(self, now: int) -> bool:
        return (
            self.is_in_trial
            and self.trial_end_date is not None
            and self.trial_end_date <= now
        )

    def start_trial(
        self,
        start: int,
        end: int,
        provenance: Optional[TrialProvenance] = None,
    ) -> None:
        """Begin a trial window."""
        self.trial_start_date = start
        self.trial_end_date = end
        self.is_in_trial = True
        self.status = TenantStatus.ACTIVE.value
        if provenance is not None:
            self.trial_info = provenance
        self.updated_at = start

    def extend_trial(self, new_end: int, now: int) -> None:
        """Move the trial end date; always re-enters the trial state."""
        self.trial_end_date = new_end
        self.is_in_trial = True
        self.status = TenantStatus.ACTIVE.value
        self.updated_at = now

    def convert_to_paid(self, plan_id: str, now: int) -> None:
        self.is_in_trial = False
        self.status = TenantStatus.ACTIVE.value
        self.subscription_plan_id = plan_id
        self.subscription_start_date = now
        self.updated_at = now

    def expire_trial(self, now: int) -> None:
        self.is_in_trial = False
        self.status = TenantStatus.INACTIVE.value
        self.trial_expired_at = now
        self.updated_at = now


__all__ = ["Tenant", "TenantDraft", "TenantStatus"]
