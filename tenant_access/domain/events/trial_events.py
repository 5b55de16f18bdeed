"""Trial lifecycle domain events."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .base import DomainEvent


@dataclass
class TrialStartedEvent(DomainEvent):
    """Event fired when a tenant is created with a trial period."""

    trial_start_date: int
    trial_end_date: int
    duration_days: int
    duration_minutes: int
    source: str
    definition_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base.update({
            "trial_start_date": self.trial_start_date,
            "trial_end_date": self.trial_end_date,
            "duration_days": self.duration_days,
            "duration_minutes": self.duration_minutes,
            "source": self.source,
            "definition_id": self.definition_id,
        })
        return base


@dataclass
class TrialExtendedEvent(DomainEvent):
    """Event fired when a trial end date is pushed back."""

    previous_end_date: Optional[int]
    new_end_date: int
    additional_days: int
    additional_minutes: int = 0

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base.update({
            "previous_end_date": self.previous_end_date,
            "new_end_date": self.new_end_date,
            "additional_days": self.additional_days,
            "additional_minutes": self.additional_minutes,
        })
        return base


@dataclass
class TrialConvertedEvent(DomainEvent):
    """Event fired when a trial becomes a paid subscription."""

    plan_id: str
    subscription_id: str
    subscription_end_date: int

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base.update({
            "plan_id": self.plan_id,
            "subscription_id": self.subscription_id,
            "subscription_end_date": self.subscription_end_date,
        })
        return base


@dataclass
class TrialExpiredEvent(DomainEvent):
    """Event fired when the sweep closes an elapsed trial."""

    trial_end_date: int

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base["trial_end_date"] = self.trial_end_date
        return base


@dataclass
class TrialStatusCorrectedEvent(DomainEvent):
    """Event fired when resolution clears a stale trial flag."""

    subscription_end_date: int

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base["subscription_end_date"] = self.subscription_end_date
        return base


__all__ = [
    "TrialStartedEvent",
    "TrialExtendedEvent",
    "TrialConvertedEvent",
    "TrialExpiredEvent",
    "TrialStatusCorrectedEvent",
]
