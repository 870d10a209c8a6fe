"""ISO 8601 datetime/date conversion utilities.

This module centralizes all transformations between Python datetime/date objects,
ISO 8601 strings and unix timestamps. Stored timestamps are always UTC at
second precision, so their ISO strings sort lexicographically in time order.
"""

from datetime import datetime, date, UTC


def to_timestamp(dt: datetime) -> str:
    """Convert datetime to ISO 8601 UTC timestamp string."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat().replace("+00:00", "Z")


def to_datetime(timestamp: str) -> datetime:
    """Convert ISO 8601 UTC timestamp string to datetime."""
    return datetime.fromisoformat(timestamp.replace('Z', '+00:00'))


def now() -> str:
    """Get current UTC timestamp as ISO 8601 string (second precision)."""
    return to_timestamp(from_unix(now_unix()))


def now_unix() -> int:
    """Get current time as integer seconds since the epoch."""
    return int(datetime.now(UTC).timestamp())


def from_unix(ts: int) -> datetime:
    """Convert unix seconds to an aware UTC datetime."""
    return datetime.fromtimestamp(ts, UTC)


def to_unix(dt: datetime) -> int:
    """Convert datetime to integer unix seconds (naive values are taken as UTC)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return int(dt.timestamp())


def to_datestring(d: date) -> str:
    """Convert date to ISO 8601 date string (YYYY-MM-DD)."""
    return d.isoformat()
