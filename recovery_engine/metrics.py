"""Recovery progress metrics."""

from __future__ import annotations

from collections import defaultdict
from typing import Optional

import numpy as np

from recovery_engine.config import ScoringConfig, get_config
from recovery_engine.levels import classify
from recovery_engine.schema import ActivityEvent, ActivityType
from recovery_engine.score_engine import compute_total, iter_deltas
from recovery_engine.timeutil import within_days


def score_trajectory(events: list[ActivityEvent], config: Optional[ScoringConfig] = None) -> np.ndarray:
    """Running score after each event in processing order, clamped for display."""

    config = config or get_config()
    deltas = np.fromiter((delta for _, delta in iter_deltas(events, config)), dtype=float)
    return np.clip(config.base_score + np.cumsum(deltas), config.min_score, config.max_score)


def compute_metrics(events: list[ActivityEvent], config: Optional[ScoringConfig] = None) -> dict:
    """Compute score, level, per-type contributions and trajectory extremes."""

    config = config or get_config()
    score = compute_total(events, config)
    level = classify(score)

    if not events:
        return {
            "score": score,
            "level": level.number,
            "label": level.label,
            "event_count": 0,
            "delta_by_type": {activity_type.value: 0.0 for activity_type in ActivityType},
            "failures_last_30_days": 0,
            "peak_score": score,
            "lowest_score": score,
            "max_drawdown": 0.0,
        }

    delta_by_type = defaultdict(float)
    for event, delta in iter_deltas(events, config):
        delta_by_type[event.type.value] += delta

    latest = max(event.timestamp for event in events)
    failures_recent = sum(
        1
        for event in events
        if event.type is ActivityType.FAILURE and within_days(latest, event.timestamp, config.failure_window_days)
    )

    trajectory = np.concatenate(([config.base_score], score_trajectory(events, config)))
    running_peak = np.maximum.accumulate(trajectory)

    return {
        "score": score,
        "level": level.number,
        "label": level.label,
        "event_count": len(events),
        "delta_by_type": {activity_type.value: float(delta_by_type[activity_type.value]) for activity_type in ActivityType},
        "failures_last_30_days": failures_recent,
        "peak_score": float(np.max(trajectory)),
        "lowest_score": float(np.min(trajectory)),
        "max_drawdown": float(np.max(running_peak - trajectory)),
    }
