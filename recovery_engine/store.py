"""In-memory ordered event store with atomic delta recompute."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import replace
from typing import Optional

from recovery_engine.config import ScoringConfig, get_config
from recovery_engine.levels import ScoreLevel, classify
from recovery_engine.recompute import recompute_all
from recovery_engine.schema import ActivityEvent, order_key
from recovery_engine.score_engine import compute_delta, compute_total
from recovery_engine.timeutil import MILLIS_PER_DAY
from recovery_engine.validation import check_unique_ids, parse_type, validate_timestamp, validate_value

logger = logging.getLogger(__name__)


def _now_millis() -> int:
    return int(time.time() * 1000)


class EventStore:
    """
    Ordered map from id to ActivityEvent.

    Every mutation builds a fresh snapshot and swaps it in under a lock, so
    readers never see a mix of stale and refreshed deltas.
    """

    def __init__(self, config: Optional[ScoringConfig] = None, events: Optional[list[ActivityEvent]] = None):
        # pinned: every stored delta is derived under this config
        self._config = config or get_config()
        self._lock = threading.Lock()
        self._events: dict[int, ActivityEvent] = {}
        self._next_id = 1
        if events:
            check_unique_ids(events)
            refreshed = recompute_all(events, self.config)
            self._events = {event.id: event for event in refreshed}
            self._next_id = max(self._events) + 1

    @property
    def config(self) -> ScoringConfig:
        return self._config

    def __len__(self) -> int:
        return len(self._events)

    def events(self) -> list[ActivityEvent]:
        """Snapshot of all events in processing order."""

        return sorted(self._events.values(), key=order_key)

    def get(self, event_id: int) -> ActivityEvent:
        try:
            return self._events[event_id]
        except KeyError:
            raise KeyError(f"No event with id {event_id}") from None

    def record(self, activity_type, timestamp: Optional[int] = None, value: int = 0) -> ActivityEvent:
        """Validate, score against the stored history, and append a new event."""

        activity_type = parse_type(activity_type)
        value = validate_value(activity_type, value)
        timestamp = _now_millis() if timestamp is None else validate_timestamp(timestamp)

        with self._lock:
            event = ActivityEvent(id=self._next_id, type=activity_type, timestamp=timestamp, value=value)
            delta = compute_delta(event, self._events.values(), self.config)
            event = replace(event, score_delta=delta)

            if any(order_key(other) > order_key(event) for other in self._events.values()):
                # back-dated entry shifts the context of everything after it
                self._swap(recompute_all([*self._events.values(), event], self.config))
                event = self._events[event.id]
            else:
                self._events = {**self._events, event.id: event}
            self._next_id += 1

        logger.info("Recorded %s event %d (delta %+.2f)", activity_type.value, event.id, delta)
        return event

    def can_modify(self, event_id: int, now: Optional[int] = None) -> bool:
        """Events may be edited or deleted only within the modify window."""

        event = self._events.get(event_id)
        if event is None:
            return False
        now = _now_millis() if now is None else now
        return now - event.timestamp <= self.config.modify_window_days * MILLIS_PER_DAY

    def _check_modifiable(self, event_id: int, now: Optional[int]) -> ActivityEvent:
        event = self.get(event_id)
        if not self.can_modify(event_id, now):
            raise PermissionError(
                f"Event {event_id} is older than {self.config.modify_window_days} days and can no longer be changed"
            )
        return event

    def update(
        self,
        event_id: int,
        activity_type=None,
        timestamp: Optional[int] = None,
        value: Optional[int] = None,
        now: Optional[int] = None,
    ) -> ActivityEvent:
        """Replace fields of a stored event, then recompute every delta."""

        with self._lock:
            current = self._check_modifiable(event_id, now)
            new_type = current.type if activity_type is None else parse_type(activity_type)
            new_value = validate_value(new_type, current.value if value is None else value)
            updated = replace(
                current,
                type=new_type,
                timestamp=current.timestamp if timestamp is None else validate_timestamp(timestamp),
                value=new_value,
            )
            self._swap(recompute_all({**self._events, event_id: updated}.values(), self.config))
            updated = self._events[event_id]

        logger.info("Updated event %d", event_id)
        return updated

    def delete(self, event_id: int, now: Optional[int] = None) -> None:
        """Remove a stored event, then recompute every remaining delta."""

        with self._lock:
            self._check_modifiable(event_id, now)
            remaining = [event for key, event in self._events.items() if key != event_id]
            self._swap(recompute_all(remaining, self.config))

        logger.info("Deleted event %d", event_id)

    def clear(self) -> None:
        with self._lock:
            self._events = {}
        logger.info("Cleared all events")

    def _swap(self, refreshed: list[ActivityEvent]) -> None:
        self._events = {event.id: event for event in refreshed}

    def total_score(self) -> float:
        return compute_total(self._events.values(), self.config)

    def level(self) -> ScoreLevel:
        return classify(self.total_score())

    def recent_history(self, limit: Optional[int] = None) -> list[ActivityEvent]:
        """Most recent events, newest first."""

        limit = self.config.history_limit if limit is None else limit
        newest_first = sorted(self._events.values(), key=order_key, reverse=True)
        return newest_first[:limit]
