"""Severity levels for recovery scores."""

from __future__ import annotations

from enum import Enum


class ScoreLevel(Enum):
    """Six ordered severity bands; ``floor`` is the inclusive lower bound."""

    LEVEL_1 = (1, 0.0, "severe addiction")
    LEVEL_2 = (2, 20.0, "heavy addiction")
    LEVEL_3 = (3, 40.0, "moderate addiction")
    LEVEL_4 = (4, 60.0, "mild addiction")
    LEVEL_5 = (5, 80.0, "near-recovered")
    LEVEL_6 = (6, 95.0, "recovered")

    def __init__(self, number: int, floor: float, label: str) -> None:
        self.number = number
        self.floor = floor
        self.label = label


def classify(score: float) -> ScoreLevel:
    """Map a score to its band, checking the highest floor first."""

    for level in sorted(ScoreLevel, key=lambda lvl: lvl.floor, reverse=True):
        if score >= level.floor:
            return level
    return ScoreLevel.LEVEL_1


def format_score(score: float) -> str:
    return f"{score:.2f}"
