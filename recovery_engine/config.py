"""
Configuration for the scoring engine.

All tunable scoring constants live here, not in code.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from zoneinfo import ZoneInfoNotFoundError

import yaml

from recovery_engine.timeutil import resolve_timezone

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoringConfig:
    """Complete scoring configuration."""

    base_score: float = 60.0
    min_score: float = 0.0
    max_score: float = 100.0

    # SUCCESS
    first_success_points: float = 0.01
    success_points_per_hour: float = 0.01
    max_success_points: float = 0.5

    # FAILURE
    failure_base_penalty: float = 0.10
    failure_growth_rate: float = 1.5
    failure_window_days: int = 30
    failure_recency_days: int = 7
    failure_recency_decay_hours: float = 24.0
    max_failure_penalty: float = 3.0

    # EXERCISE / SLEEP
    exercise_points: float = 0.1
    sleep_baseline: int = 60
    sleep_points_per_unit: float = 0.01
    max_sleep_points: float = 0.5

    # Calendar-day grouping zone (IANA name)
    timezone: str = "UTC"

    # Store
    modify_window_days: int = 7
    history_limit: int = 10


_DEFAULT_CONFIG = ScoringConfig()

# Active configuration (can be replaced at runtime)
_active_config: ScoringConfig = _DEFAULT_CONFIG


def get_config() -> ScoringConfig:
    """Get the active scoring configuration."""
    return _active_config


def set_config(config: ScoringConfig) -> None:
    """Set the active scoring configuration."""
    global _active_config
    _active_config = config


def reset_config() -> None:
    """Reset to default configuration."""
    global _active_config
    _active_config = _DEFAULT_CONFIG


def _coerce(name: str, expected: type, raw):
    if isinstance(raw, bool):
        raise ValueError(f"Config field '{name}' must be {expected.__name__}, got bool")
    if expected is float and isinstance(raw, (int, float)):
        return float(raw)
    if expected is int and isinstance(raw, int):
        return raw
    if expected is str and isinstance(raw, str):
        return raw
    raise ValueError(f"Config field '{name}' must be {expected.__name__}, got {type(raw).__name__}")


def load_config_from_yaml(path: str | Path) -> ScoringConfig:
    """
    Load a scoring configuration from a YAML file.

    Keys absent from the file keep their default values.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the YAML is malformed, is not a mapping, or holds
            unknown keys or values of the wrong type.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(config_path, encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except yaml.YAMLError as exc:
        raise ValueError(f"Failed to parse YAML: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError("Config file must contain a mapping at the top level")

    known = {f.name: f for f in fields(ScoringConfig)}
    unknown = sorted(set(data) - set(known))
    if unknown:
        raise ValueError(f"Unknown config fields: {unknown}")

    types = {"float": float, "int": int, "str": str}
    overrides = {name: _coerce(name, types[known[name].type], raw) for name, raw in data.items()}

    config = replace(_DEFAULT_CONFIG, **overrides)
    try:
        resolve_timezone(config.timezone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Config field 'timezone' is not a known time zone: {config.timezone!r}") from exc

    logger.info("Loaded scoring config from %s (%d overrides)", config_path, len(overrides))
    return config
