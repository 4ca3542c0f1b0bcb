"""Core data schema for activity events."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ActivityType(str, Enum):
    """Kinds of user-recorded actions."""

    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    EXERCISE = "EXERCISE"
    SLEEP = "SLEEP"


@dataclass(frozen=True)
class ActivityEvent:
    """Single timestamped activity record.

    ``timestamp`` is milliseconds since the epoch. ``value`` is unused for
    SUCCESS/FAILURE, a duration in minutes for EXERCISE and a 0-100 quality
    score for SLEEP. ``score_delta`` is derived by the score engine.
    """

    id: int
    type: ActivityType
    timestamp: int
    value: int = 0
    score_delta: float = 0.0


def order_key(event: ActivityEvent) -> tuple[int, int]:
    """Processing order: ascending timestamp, ties broken by id."""

    return (event.timestamp, event.id)
