"""Input checks applied before an activity event is constructed."""

from __future__ import annotations

from recovery_engine.schema import ActivityType

SLEEP_SCORE_RANGE = (0, 100)


def parse_type(raw) -> ActivityType:
    """Parse an activity type name, case-insensitively."""

    if isinstance(raw, ActivityType):
        return raw
    name = str(raw).strip().upper()
    try:
        return ActivityType(name)
    except ValueError as exc:
        raise ValueError(f"invalid activity type '{raw}'") from exc


def validate_value(activity_type: ActivityType, value) -> int:
    """Return ``value`` as an int after checking it fits ``activity_type``."""

    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"value must be an integer, got {value!r}")

    if activity_type is ActivityType.SLEEP:
        low, high = SLEEP_SCORE_RANGE
        if not low <= value <= high:
            raise ValueError(f"sleep score must be within [{low}, {high}], got {value}")
    elif activity_type is ActivityType.EXERCISE:
        if value <= 0:
            raise ValueError(f"exercise duration must be positive, got {value}")
    return value


def validate_timestamp(timestamp) -> int:
    """Return ``timestamp`` after checking it is integer epoch milliseconds."""

    if isinstance(timestamp, bool) or not isinstance(timestamp, int):
        raise ValueError(f"timestamp must be integer epoch milliseconds, got {timestamp!r}")
    return timestamp


def check_unique_ids(events) -> None:
    seen = set()
    for event in events:
        if event.id in seen:
            raise ValueError(f"duplicate event id {event.id}")
        seen.add(event.id)
