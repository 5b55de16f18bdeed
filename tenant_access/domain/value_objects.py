"""Domain value objects used across aggregates."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class TrialDuration:
    """Length of a trial period plus where the value came from."""

    days: int
    minutes: int = 0
    definition_id: Optional[str] = None
    definition_name: Optional[str] = None
    source: str = "default"

    def __post_init__(self):
        if self.days < 0 or self.minutes < 0:
            raise ValueError("Trial duration cannot be negative")


@dataclass(frozen=True)
class TrialRemaining:
    """Floor breakdown of the time left in a trial, used by banners."""

    days: int
    hours: int
    minutes: int

    @property
    def is_elapsed(self) -> bool:
        return self.days == 0 and self.hours == 0 and self.minutes == 0

    def to_dict(self) -> Dict[str, int]:
        return {"days": self.days, "hours": self.hours, "minutes": self.minutes}


@dataclass(frozen=True)
class TrialProvenance:
    """Audit record of which trial definition was applied to a tenant."""

    duration_days: int
    duration_minutes: int
    config_id: Optional[str]
    period_name: Optional[str]
    source: str
    formatted_end_date: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "durationDays": self.duration_days,
            "durationMinutes": self.duration_minutes,
            "configId": self.config_id,
            "periodName": self.period_name,
            "source": self.source,
            "formattedEndDate": self.formatted_end_date,
        }


__all__ = ["TrialDuration", "TrialRemaining", "TrialProvenance"]
