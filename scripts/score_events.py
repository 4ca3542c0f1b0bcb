"""Score a CSV/JSON activity event log and print a JSON report."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from recovery_engine.adapters import csv_adapter, json_adapter
from recovery_engine.config import get_config, load_config_from_yaml, set_config
from recovery_engine.levels import format_score
from recovery_engine.metrics import compute_metrics
from recovery_engine.schema import order_key
from recovery_engine.timeutil import from_millis, resolve_timezone


def _load_events(path: Path):
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return csv_adapter.parse(str(path))
    if suffix == ".json":
        return json_adapter.parse(str(path))
    raise ValueError("Unsupported input format, expected .csv or .json")


def build_report(events) -> dict:
    config = get_config()
    tz = resolve_timezone(config.timezone)
    report = compute_metrics(events)
    report["display_score"] = format_score(report["score"])
    recent = sorted(events, key=order_key, reverse=True)[: config.history_limit]
    report["recent_history"] = [
        {
            "id": event.id,
            "type": event.type.value,
            "time": from_millis(event.timestamp, tz).strftime("%m-%d %H:%M"),
            "value": event.value,
            "delta": f"{event.score_delta:+.2f}",
        }
        for event in recent
    ]
    return report


def main() -> None:
    parser = argparse.ArgumentParser(description="Compute a recovery score from an activity event log")
    parser.add_argument("--data", required=True, help="Path to CSV/JSON events file")
    parser.add_argument("--config", help="Optional YAML file overriding scoring constants")
    parser.add_argument("--output", help="Optional path to write the JSON report")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    if args.config:
        set_config(load_config_from_yaml(args.config))

    events = _load_events(Path(args.data))
    report = build_report(events)
    print(json.dumps(report, indent=2))

    if args.output:
        out_path = Path(args.output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(json.dumps(report, indent=2), encoding="utf-8")
        print(f"Saved score report to {out_path}")


if __name__ == "__main__":
    main()
