"""Calendar-day and rolling-window helpers over epoch-millisecond timestamps."""

from __future__ import annotations

from datetime import datetime, timezone, tzinfo
from functools import lru_cache
from zoneinfo import ZoneInfo

MILLIS_PER_HOUR = 1000 * 60 * 60
MILLIS_PER_DAY = 24 * MILLIS_PER_HOUR


@lru_cache(maxsize=None)
def resolve_timezone(name: str) -> tzinfo:
    """Map an IANA zone name to a tzinfo; ``UTC`` needs no tz database."""

    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def from_millis(timestamp: int, tz: tzinfo = timezone.utc) -> datetime:
    return datetime.fromtimestamp(timestamp / 1000.0, tz=tz)


def to_millis(value: datetime, tz: tzinfo = timezone.utc) -> int:
    """Convert a datetime to epoch milliseconds; naive values are read in ``tz``."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=tz)
    return int(round(value.timestamp() * 1000))


def calendar_day(timestamp: int, tz: tzinfo = timezone.utc) -> tuple[int, int]:
    """Return ``(year, day_of_year)`` of the timestamp in ``tz``."""

    local = from_millis(timestamp, tz)
    return local.year, local.timetuple().tm_yday


def same_calendar_day(first: int, second: int, tz: tzinfo = timezone.utc) -> bool:
    return calendar_day(first, tz) == calendar_day(second, tz)


def whole_hours_between(earlier: int, later: int) -> int:
    """Elapsed hours, partial hours dropped."""

    return (later - earlier) // MILLIS_PER_HOUR


def hours_between(earlier: int, later: int) -> float:
    return (later - earlier) / MILLIS_PER_HOUR


def within_days(current: int, other: int, days: int) -> bool:
    """True when ``other`` lies in the trailing ``days`` window ending at ``current`` (inclusive)."""

    return 0 <= current - other <= days * MILLIS_PER_DAY
