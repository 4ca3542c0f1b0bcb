"""JSON adapter for activity event logs."""

from __future__ import annotations

import json

from recovery_engine.adapters._fields import build_event
from recovery_engine.recompute import recompute_all
from recovery_engine.schema import ActivityEvent
from recovery_engine.validation import check_unique_ids


def parse(file_path: str) -> list[ActivityEvent]:
    """Parse a JSON list of objects into events with freshly derived score deltas."""

    with open(file_path, encoding="utf-8") as handle:
        payload = json.load(handle)

    if not isinstance(payload, list):
        raise ValueError("JSON payload must be a list of objects")

    events = []
    for index, item in enumerate(payload, start=1):
        if not isinstance(item, dict):
            raise ValueError(f"Item {index}: expected an object")
        events.append(build_event(item, index, "Item", default_id=index))

    check_unique_ids(events)
    return recompute_all(events)
