"""Full replay of stored deltas after an edit or delete."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, Optional

from recovery_engine.config import ScoringConfig
from recovery_engine.schema import ActivityEvent
from recovery_engine.score_engine import iter_deltas

logger = logging.getLogger(__name__)


def recompute_all(events: Iterable[ActivityEvent], config: Optional[ScoringConfig] = None) -> list[ActivityEvent]:
    """Return the events in processing order with every ``score_delta`` re-derived.

    Each delta is computed against the already-processed prefix only, so the
    refreshed deltas sum (plus the base score, then clamped) to
    ``compute_total`` over the same events. The input is not mutated.
    """

    refreshed = [replace(event, score_delta=delta) for event, delta in iter_deltas(events, config)]
    logger.debug("Recomputed deltas for %d events", len(refreshed))
    return refreshed
