"""Recovery score engine: folds an ordered event history into a bounded score."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import tzinfo
from math import exp
from typing import Iterable, Iterator, Optional

from recovery_engine.config import ScoringConfig, get_config
from recovery_engine.schema import ActivityEvent, ActivityType, order_key
from recovery_engine.timeutil import (
    calendar_day,
    hours_between,
    resolve_timezone,
    whole_hours_between,
    within_days,
)

logger = logging.getLogger(__name__)


@dataclass
class _FoldState:
    """Accumulator carried left-to-right through one pass over the history."""

    tz: tzinfo
    last_motivation_time: Optional[int] = None
    failure_timestamps: list[int] = field(default_factory=list)
    failure_days: set[tuple[int, int]] = field(default_factory=set)
    same_day_ledger: dict[tuple[int, int], list[ActivityEvent]] = field(default_factory=lambda: defaultdict(list))


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _success_points(state: _FoldState, event: ActivityEvent, config: ScoringConfig) -> float:
    last = state.last_motivation_time
    state.last_motivation_time = event.timestamp
    if last is None:
        return config.first_success_points

    hours = whole_hours_between(last, event.timestamp)
    return min(hours * config.success_points_per_hour, config.max_success_points)


def _sleep_points(value: int, config: ScoringConfig) -> float:
    raw = (value - config.sleep_baseline) * config.sleep_points_per_unit
    return _clamp(raw, -config.max_sleep_points, config.max_sleep_points)


def _same_day_offset(state: _FoldState, day: tuple[int, int], config: ScoringConfig) -> float:
    """Would-be gains from exercise and sleep already logged on ``day``."""

    offset = 0.0
    for entry in state.same_day_ledger.get(day, ()):
        if entry.type is ActivityType.EXERCISE:
            offset += config.exercise_points
        elif entry.type is ActivityType.SLEEP:
            points = _sleep_points(entry.value, config)
            if points > 0:
                offset += points
    return offset


def _failure_penalty(state: _FoldState, event: ActivityEvent, config: ScoringConfig) -> float:
    now = event.timestamp
    earlier = [ts for ts in state.failure_timestamps if ts < now]

    state.failure_timestamps.append(now)
    day = calendar_day(now, state.tz)
    state.failure_days.add(day)
    state.last_motivation_time = now

    window_count = sum(1 for ts in state.failure_timestamps if within_days(now, ts, config.failure_window_days))
    penalty = config.failure_base_penalty
    if window_count > 1:
        penalty = config.failure_base_penalty * config.failure_growth_rate ** (window_count - 1)

    # closer previous relapse, steeper multiplier: ~2x immediately, ~1x at the window edge
    if earlier:
        since_last = hours_between(max(earlier), now)
        if since_last < config.failure_recency_days * 24:
            penalty *= 1.0 + exp(-since_last / config.failure_recency_decay_hours)

    penalty += _same_day_offset(state, day, config)

    if penalty > config.max_failure_penalty:
        logger.debug(
            "Failure %s penalty %.4f capped at %.2f (window_count=%d)",
            event.id,
            penalty,
            config.max_failure_penalty,
            window_count,
        )
        return config.max_failure_penalty
    return penalty


def _apply(state: _FoldState, event: ActivityEvent, config: ScoringConfig) -> float:
    """Advance the accumulator by one event and return that event's delta."""

    if event.type is ActivityType.SUCCESS:
        return _success_points(state, event, config)

    if event.type is ActivityType.FAILURE:
        return -_failure_penalty(state, event, config)

    day = calendar_day(event.timestamp, state.tz)
    state.same_day_ledger[day].append(event)
    relapsed_today = day in state.failure_days

    if event.type is ActivityType.EXERCISE:
        return 0.0 if relapsed_today else config.exercise_points

    if event.type is ActivityType.SLEEP:
        points = _sleep_points(event.value, config)
        # deductions always apply; gains are voided on a relapse day
        if points < 0:
            return points
        return 0.0 if relapsed_today else points

    raise ValueError(f"Unsupported activity type: {event.type!r}")


def iter_deltas(
    events: Iterable[ActivityEvent], config: Optional[ScoringConfig] = None
) -> Iterator[tuple[ActivityEvent, float]]:
    """Yield ``(event, delta)`` in processing order, each delta computed from strictly earlier events only."""

    config = config or get_config()
    state = _FoldState(tz=resolve_timezone(config.timezone))
    for event in sorted(events, key=order_key):
        yield event, _apply(state, event, config)


def compute_total(events: Iterable[ActivityEvent], config: Optional[ScoringConfig] = None) -> float:
    """Compute the clamped aggregate score over an event history."""

    config = config or get_config()
    score = config.base_score
    for _, delta in iter_deltas(events, config):
        score += delta
    return _clamp(score, config.min_score, config.max_score)


def compute_delta(
    event: ActivityEvent, prior_events: Iterable[ActivityEvent], config: Optional[ScoringConfig] = None
) -> float:
    """Compute the delta ``event`` contributes given the events ordered before it."""

    config = config or get_config()
    key = order_key(event)
    state = _FoldState(tz=resolve_timezone(config.timezone))
    for prior in sorted((e for e in prior_events if order_key(e) < key), key=order_key):
        _apply(state, prior, config)
    return _apply(state, event, config)
