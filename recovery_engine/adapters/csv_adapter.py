"""CSV adapter for activity event logs."""

from __future__ import annotations

import csv

from recovery_engine.adapters._fields import build_event
from recovery_engine.recompute import recompute_all
from recovery_engine.schema import ActivityEvent
from recovery_engine.validation import check_unique_ids


def parse(file_path: str) -> list[ActivityEvent]:
    """Parse a CSV file into events with freshly derived score deltas."""

    with open(file_path, newline="", encoding="utf-8") as handle:
        reader = csv.DictReader(handle)
        if not reader.fieldnames:
            return []

        events: list[ActivityEvent] = []
        for index, row in enumerate(reader, start=1):
            events.append(build_event(row, index + 1, "Row", default_id=index))

    check_unique_ids(events)
    return recompute_all(events)
