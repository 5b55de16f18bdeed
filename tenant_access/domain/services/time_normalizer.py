"""
Time normalization at the persistence boundary.

Stored documents carry instants in several shapes: native datetimes, epoch
milliseconds, ISO-8601 strings and store-native timestamp objects. Everything
is converted to epoch milliseconds here so that the rest of the engine only
ever compares integers.

Leniency contract: absent or unparseable input resolves to "now" and never
raises, because upstream data quality is not guaranteed.
"""

from __future__ import annotations

import math
import time
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Mapping, Optional

import structlog
from dateutil.parser import isoparse

logger = structlog.get_logger(__name__)

Clock = Callable[[], int]

MILLIS_PER_SECOND = 1_000
MILLIS_PER_MINUTE = 60_000
MILLIS_PER_HOUR = 3_600_000
MILLIS_PER_DAY = 86_400_000

# Instants a datetime can represent (0001-01-01 to 9999-12-31, UTC)
MIN_MILLIS = -62_135_596_800_000
MAX_MILLIS = 253_402_300_799_999

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def current_millis() -> int:
    """Wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


class TimeNormalizer:
    """Converts heterogeneous time representations into epoch milliseconds."""

    def __init__(self, clock: Clock = current_millis):
        self._clock = clock

    def now_ms(self) -> int:
        return self._clock()

    def to_millis(self, value: Any) -> int:
        """Normalize any supported representation; fall back to now."""
        millis = self._convert(value)
        if millis is not None and not MIN_MILLIS <= millis <= MAX_MILLIS:
            millis = None
        if millis is None:
            if value is not None:
                logger.debug(
                    "Unparseable or out-of-range timestamp, using current time",
                    value_type=type(value).__name__,
                )
            return self.now_ms()
        return millis

    def to_optional_millis(self, value: Any) -> Optional[int]:
        """Nullable variant: a missing value stays missing."""
        if value is None or value == "":
            return None
        return self.to_millis(value)

    def _convert(self, value: Any) -> Optional[int]:
        if value is None or isinstance(value, bool):
            return None

        if isinstance(value, datetime):
            return _datetime_to_millis(value)

        if isinstance(value, date):
            return _datetime_to_millis(datetime(value.year, value.month, value.day))

        if isinstance(value, (int, float)):
            if isinstance(value, float) and not math.isfinite(value):
                return None
            return int(value)

        if isinstance(value, str):
            return _parse_string(value.strip())

        if isinstance(value, Mapping):
            return _mapping_to_millis(value)

        # Store-native timestamp objects
        to_datetime = getattr(value, "to_datetime", None)
        if callable(to_datetime):
            try:
                return _datetime_to_millis(to_datetime())
            except (TypeError, ValueError, OverflowError, AttributeError):
                return None

        seconds = getattr(value, "seconds", None)
        if isinstance(seconds, (int, float)) and not isinstance(seconds, bool):
            nanos = getattr(value, "nanoseconds", None) or getattr(value, "nanos", 0) or 0
            return int(seconds) * MILLIS_PER_SECOND + int(nanos) // 1_000_000

        timestamp = getattr(value, "timestamp", None)
        if callable(timestamp):
            try:
                return int(float(timestamp()) * MILLIS_PER_SECOND)
            except (TypeError, ValueError, OverflowError):
                return None

        return None


def _datetime_to_millis(value: datetime) -> Optional[int]:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    try:
        return int(value.timestamp() * MILLIS_PER_SECOND)
    except (OverflowError, OSError, ValueError):
        return None


def _parse_string(value: str) -> Optional[int]:
    if not value:
        return None

    try:
        number = float(value)
    except ValueError:
        number = None
    if number is not None:
        return int(number) if math.isfinite(number) else None

    try:
        return _datetime_to_millis(isoparse(value))
    except (ValueError, OverflowError):
        return None


def _mapping_to_millis(value: Mapping[str, Any]) -> Optional[int]:
    seconds = value.get("seconds", value.get("_seconds"))
    if not isinstance(seconds, (int, float)) or isinstance(seconds, bool):
        return None
    nanos = value.get("nanoseconds", value.get("_nanoseconds", 0)) or 0
    return int(seconds) * MILLIS_PER_SECOND + int(nanos) // 1_000_000


def format_date(millis: int) -> str:
    """Render an instant as DD/MM/YYYY (UTC) for user-facing messages."""
    return to_datetime(min(max(millis, MIN_MILLIS), MAX_MILLIS)).strftime("%d/%m/%Y")


def to_datetime(millis: int) -> datetime:
    return EPOCH + timedelta(milliseconds=millis)


__all__ = [
    "Clock",
    "TimeNormalizer",
    "current_millis",
    "format_date",
    "to_datetime",
    "MAX_MILLIS",
    "MIN_MILLIS",
    "MILLIS_PER_SECOND",
    "MILLIS_PER_MINUTE",
    "MILLIS_PER_HOUR",
    "MILLIS_PER_DAY",
]
