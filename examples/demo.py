"""Demo script for recovery-engine."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from recovery_engine.adapters.csv_adapter import parse
from recovery_engine.levels import classify, format_score
from recovery_engine.score_engine import compute_total
from recovery_engine.store import EventStore


def main() -> None:
    events = parse(str(Path(__file__).with_name("sample_events.csv")))
    score = compute_total(events)
    level = classify(score)
    print("Score:", format_score(score), f"(level {level.number}: {level.label})")
    for event in EventStore(events=events).recent_history():
        print(f"  #{event.id:<3} {event.type.value:<8} {event.score_delta:+.2f}")


if __name__ == "__main__":
    main()
