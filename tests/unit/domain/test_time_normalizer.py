"""Tests for TimeNormalizer.

Every supported representation converges on epoch milliseconds; anything
absent or unparseable resolves to the injected "now" without raising.
"""

from datetime import date, datetime, timezone

import pytest
from hypothesis import given, strategies as st

from tenant_access.domain.services.time_normalizer import (
    MAX_MILLIS,
    MIN_MILLIS,
    TimeNormalizer,
    format_date,
    to_datetime,
)
from tests.fixtures.tenant_fixtures import NOW


class StoreTimestamp:
    """Stand-in for a store-native timestamp exposing ``to_datetime``."""

    def __init__(self, moment: datetime):
        self._moment = moment

    def to_datetime(self) -> datetime:
        return self._moment


class ProtoTimestamp:
    """Stand-in for a seconds/nanos timestamp object."""

    def __init__(self, seconds: int, nanos: int):
        self.seconds = seconds
        self.nanos = nanos


@pytest.fixture
def normalizer() -> TimeNormalizer:
    return TimeNormalizer(lambda: NOW)


# ============================================================================
# Supported representations
# ============================================================================


class TestSupportedRepresentations:

    def test_epoch_millis_pass_through(self, normalizer: TimeNormalizer):
        assert normalizer.to_millis(1_600_000_000_123) == 1_600_000_000_123

    def test_float_is_truncated(self, normalizer: TimeNormalizer):
        assert normalizer.to_millis(1_600_000_000_123.9) == 1_600_000_000_123

    def test_aware_datetime(self, normalizer: TimeNormalizer):
        moment = datetime(2024, 1, 31, 12, 0, tzinfo=timezone.utc)
        assert normalizer.to_millis(moment) == int(moment.timestamp() * 1000)

    def test_naive_datetime_is_treated_as_utc(self, normalizer: TimeNormalizer):
        naive = datetime(2024, 1, 31, 12, 0)
        aware = naive.replace(tzinfo=timezone.utc)
        assert normalizer.to_millis(naive) == normalizer.to_millis(aware)

    def test_date_is_midnight_utc(self, normalizer: TimeNormalizer):
        expected = int(datetime(2024, 3, 1, tzinfo=timezone.utc).timestamp() * 1000)
        assert normalizer.to_millis(date(2024, 3, 1)) == expected

    @pytest.mark.parametrize(
        "value",
        [
            "2024-01-31T12:00:00Z",
            "2024-01-31T12:00:00+00:00",
            "2024-01-31T13:00:00+01:00",
            "2024-01-31T12:00:00.000Z",
        ],
    )
    def test_iso_strings(self, normalizer: TimeNormalizer, value: str):
        expected = int(datetime(2024, 1, 31, 12, tzinfo=timezone.utc).timestamp() * 1000)
        assert normalizer.to_millis(value) == expected

    def test_numeric_string(self, normalizer: TimeNormalizer):
        assert normalizer.to_millis(" 1600000000000 ") == 1_600_000_000_000

    def test_store_timestamp_object(self, normalizer: TimeNormalizer):
        moment = datetime(2023, 5, 1, tzinfo=timezone.utc)
        assert normalizer.to_millis(StoreTimestamp(moment)) == int(moment.timestamp() * 1000)

    def test_seconds_nanos_object(self, normalizer: TimeNormalizer):
        assert normalizer.to_millis(ProtoTimestamp(1_700_000_000, 250_000_000)) == 1_700_000_000_250

    @pytest.mark.parametrize(
        "value",
        [
            {"seconds": 1_700_000_000, "nanoseconds": 5_000_000},
            {"_seconds": 1_700_000_000, "_nanoseconds": 5_000_000},
        ],
    )
    def test_serialized_timestamp_mapping(self, normalizer: TimeNormalizer, value):
        assert normalizer.to_millis(value) == 1_700_000_000_005


# ============================================================================
# Leniency contract
# ============================================================================


class TestLeniency:

    @pytest.mark.parametrize(
        "value",
        [None, "", "not a date", "31/01/2024", float("nan"), float("inf"), True, {"seconds": "x"}, object()],
    )
    def test_unparseable_input_resolves_to_now(self, normalizer: TimeNormalizer, value):
        assert normalizer.to_millis(value) == NOW

    @pytest.mark.parametrize("value", [-10**17, 10**17, "100000000000000000", {"seconds": 10**15}])
    def test_out_of_range_instants_resolve_to_now(self, normalizer: TimeNormalizer, value):
        assert normalizer.to_millis(value) == NOW

    def test_range_bounds_are_kept(self, normalizer: TimeNormalizer):
        assert normalizer.to_millis(MIN_MILLIS) == MIN_MILLIS
        assert normalizer.to_millis(MAX_MILLIS) == MAX_MILLIS

    def test_optional_keeps_missing_values_missing(self, normalizer: TimeNormalizer):
        assert normalizer.to_optional_millis(None) is None
        assert normalizer.to_optional_millis("") is None

    def test_optional_still_falls_back_for_garbage(self, normalizer: TimeNormalizer):
        assert normalizer.to_optional_millis("garbage") == NOW

    @given(st.text())
    def test_arbitrary_text_never_raises(self, value: str):
        """Property: string input always yields an integer."""
        result = TimeNormalizer(lambda: NOW).to_millis(value)
        assert isinstance(result, int)

    @given(st.datetimes(timezones=st.just(timezone.utc)))
    def test_datetime_and_iso_string_agree(self, moment: datetime):
        """Property: a datetime and its ISO rendering normalize identically."""
        normalizer = TimeNormalizer(lambda: NOW)
        assert normalizer.to_millis(moment) == normalizer.to_millis(moment.isoformat())


# ============================================================================
# Formatting helpers
# ============================================================================


class TestFormatting:

    def test_format_date_is_day_month_year(self):
        moment = datetime(2024, 2, 5, 23, 59, tzinfo=timezone.utc)
        assert format_date(int(moment.timestamp() * 1000)) == "05/02/2024"

    @pytest.mark.parametrize(
        "millis, expected",
        [(-10**17, "01/01/"), (MIN_MILLIS, "01/01/"), (10**17, "31/12/9999"), (MAX_MILLIS, "31/12/9999")],
    )
    def test_format_date_clamps_unrepresentable_instants(self, millis, expected):
        assert format_date(millis).startswith(expected)

    def test_to_datetime_is_utc(self):
        result = to_datetime(NOW)
        assert result.tzinfo == timezone.utc
        assert result == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)

    def test_now_uses_injected_clock(self):
        normalizer = TimeNormalizer(lambda: NOW + 1)
        assert normalizer.now_ms() == NOW + 1
