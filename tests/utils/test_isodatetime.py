"""Tests for isodatetime module."""

from datetime import date, datetime, UTC

from fintrack_core.utils import isodatetime


class TestToTimestamp:
    """Tests for to_timestamp function."""

    def test_converts_naive_datetime_to_utc(self):
        """Naive datetime should be treated as UTC."""
        assert isodatetime.to_timestamp(datetime(2025, 12, 23, 10, 30, 0)) == "2025-12-23T10:30:00Z"

    def test_converts_aware_datetime_to_utc(self):
        assert isodatetime.to_timestamp(datetime(2025, 12, 23, 10, 30, 0, tzinfo=UTC)) == "2025-12-23T10:30:00Z"


class TestToDatetime:
    """Tests for to_datetime function."""

    def test_converts_z_suffix(self):
        assert isodatetime.to_datetime("2025-12-23T10:30:00Z") == datetime(2025, 12, 23, 10, 30, 0, tzinfo=UTC)


class TestUnix:
    """Tests for the unix-seconds helpers."""

    def test_round_trip(self):
        dt = isodatetime.from_unix(1767225600)
        assert dt == datetime(2026, 1, 1, tzinfo=UTC)
        assert isodatetime.to_unix(dt) == 1767225600

    def test_naive_is_utc(self):
        assert isodatetime.to_unix(datetime(2026, 1, 1)) == 1767225600

    def test_now_has_second_precision(self):
        """Stored timestamps carry no fractional seconds."""
        result = isodatetime.now()
        assert result.endswith("Z")
        assert "." not in result

    def test_timestamps_sort_in_time_order(self):
        earlier = isodatetime.to_timestamp(isodatetime.from_unix(1767225600))
        later = isodatetime.to_timestamp(isodatetime.from_unix(1767225601))
        assert earlier < later


class TestToDatestring:
    """Tests for to_datestring function."""

    def test_formats_date(self):
        assert isodatetime.to_datestring(date(2025, 1, 5)) == "2025-01-05"
