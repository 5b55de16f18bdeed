"""Pure trial-period arithmetic on epoch milliseconds."""

from __future__ import annotations

from tenant_access.domain.services.time_normalizer import (
    MILLIS_PER_DAY,
    MILLIS_PER_HOUR,
    MILLIS_PER_MINUTE,
)
from tenant_access.domain.value_objects import TrialRemaining


class TrialClock:
    """
    Computes trial end instants and remaining time.

    Two rounding rules coexist on purpose:
    - ``remaining`` floors each unit and feeds the detailed banner breakdown.
    - ``days_remaining_ceil`` counts any partial day as a full day and feeds
      ``ResolvedStatus.trial_days_remaining``.
    """

    @staticmethod
    def compute_end_instant(start: int, days: int, minutes: int = 0) -> int:
        return start + days * MILLIS_PER_DAY + minutes * MILLIS_PER_MINUTE

    @staticmethod
    def remaining(end: int, now: int) -> TrialRemaining:
        diff = end - now
        if diff <= 0:
            return TrialRemaining(days=0, hours=0, minutes=0)

        days = diff // MILLIS_PER_DAY
        remainder = diff % MILLIS_PER_DAY
        hours = remainder // MILLIS_PER_HOUR
        minutes = (remainder % MILLIS_PER_HOUR) // MILLIS_PER_MINUTE
        return TrialRemaining(days=days, hours=hours, minutes=minutes)

    @staticmethod
    def days_remaining_ceil(end: int, now: int) -> int:
        return -((now - end) // MILLIS_PER_DAY)


__all__ = ["TrialClock"]
