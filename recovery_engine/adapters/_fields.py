"""Field parsing shared by the event log adapters."""

from __future__ import annotations

from datetime import datetime

from recovery_engine.config import get_config
from recovery_engine.schema import ActivityEvent
from recovery_engine.timeutil import resolve_timezone, to_millis
from recovery_engine.validation import parse_type, validate_value

REQUIRED_FIELDS = ("type", "timestamp")


def parse_timestamp(raw) -> int:
    """Epoch milliseconds from an integer or an ISO-8601 string."""

    if isinstance(raw, bool):
        raise ValueError("boolean is not a timestamp")
    if isinstance(raw, int):
        return raw
    text = str(raw).strip()
    if text.lstrip("-").isdigit():
        return int(text)
    tz = resolve_timezone(get_config().timezone)
    return to_millis(datetime.fromisoformat(text), tz)


def build_event(record: dict, position: int, label: str, default_id: int) -> ActivityEvent:
    missing = [name for name in REQUIRED_FIELDS if record.get(name) in (None, "")]
    if missing:
        raise ValueError(f"{label} {position}: missing required fields {missing}")

    try:
        timestamp = parse_timestamp(record["timestamp"])
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"{label} {position}: malformed timestamp") from exc

    try:
        activity_type = parse_type(record["type"])
    except ValueError as exc:
        raise ValueError(f"{label} {position}: {exc}") from exc

    value_raw = record.get("value")
    value = 0
    if value_raw not in (None, ""):
        try:
            value = int(str(value_raw).strip())
        except ValueError as exc:
            raise ValueError(f"{label} {position}: invalid value") from exc

    try:
        value = validate_value(activity_type, value)
    except ValueError as exc:
        raise ValueError(f"{label} {position}: {exc}") from exc

    id_raw = record.get("id")
    event_id = default_id
    if id_raw not in (None, ""):
        try:
            event_id = int(str(id_raw).strip())
        except ValueError as exc:
            raise ValueError(f"{label} {position}: invalid id") from exc

    return ActivityEvent(id=event_id, type=activity_type, timestamp=timestamp, value=value)
