import threading
from datetime import datetime, timezone

import pytest

from recovery_engine.config import ScoringConfig, reset_config, set_config
from recovery_engine.levels import ScoreLevel
from recovery_engine.schema import ActivityEvent, ActivityType
from recovery_engine.score_engine import compute_total
from recovery_engine.store import EventStore
from recovery_engine.timeutil import MILLIS_PER_DAY, MILLIS_PER_HOUR, to_millis

T = to_millis(datetime(2025, 6, 10, 10, 0, tzinfo=timezone.utc))


def test_record_assigns_ids_and_deltas():
    store = EventStore()
    failure = store.record("failure", T)
    exercise = store.record(ActivityType.EXERCISE, T + 1000, 30)

    assert (failure.id, exercise.id) == (1, 2)
    assert failure.score_delta == pytest.approx(-0.10)
    assert exercise.score_delta == 0.0
    assert store.total_score() == pytest.approx(59.90)
    assert store.level() is ScoreLevel.LEVEL_3


def test_backdated_record_refreshes_later_deltas():
    store = EventStore()
    exercise = store.record("EXERCISE", T + 1000, 30)
    assert exercise.score_delta == pytest.approx(0.10)

    store.record("FAILURE", T)
    assert store.get(exercise.id).score_delta == 0.0
    assert store.total_score() == pytest.approx(59.90)


def test_record_rejects_invalid_values():
    store = EventStore()
    with pytest.raises(ValueError):
        store.record("SLEEP", T, 120)
    with pytest.raises(ValueError):
        store.record("EXERCISE", T, 0)
    with pytest.raises(ValueError):
        store.record("READING", T, 30)
    assert len(store) == 0


def test_update_recomputes_everything():
    store = EventStore()
    failure = store.record("FAILURE", T)
    exercise = store.record("EXERCISE", T + 1000, 30)

    store.update(failure.id, timestamp=T + MILLIS_PER_DAY, now=T + MILLIS_PER_DAY)

    assert store.get(exercise.id).score_delta == pytest.approx(0.10)
    assert store.get(failure.id).score_delta == pytest.approx(-0.10)
    assert store.total_score() == pytest.approx(60.0)


def test_update_value_is_validated():
    store = EventStore()
    sleep = store.record("SLEEP", T, 80)
    with pytest.raises(ValueError):
        store.update(sleep.id, value=-5, now=T)
    assert store.get(sleep.id).value == 80

    updated = store.update(sleep.id, value=40, now=T)
    assert updated.score_delta == pytest.approx(-0.20)


def test_delete_restores_deltas():
    store = EventStore()
    failure = store.record("FAILURE", T)
    exercise = store.record("EXERCISE", T + 1000, 30)

    store.delete(failure.id, now=T + MILLIS_PER_HOUR)

    assert len(store) == 1
    assert store.get(exercise.id).score_delta == pytest.approx(0.10)
    with pytest.raises(KeyError):
        store.get(failure.id)


def test_modify_window_enforced():
    store = EventStore()
    event = store.record("SUCCESS", T)
    late = T + 8 * MILLIS_PER_DAY

    assert store.can_modify(event.id, now=T + 7 * MILLIS_PER_DAY)
    assert not store.can_modify(event.id, now=late)
    assert not store.can_modify(999, now=T)
    with pytest.raises(PermissionError):
        store.delete(event.id, now=late)
    with pytest.raises(PermissionError):
        store.update(event.id, value=1, now=late)


def test_unknown_id_raises_key_error():
    store = EventStore()
    with pytest.raises(KeyError):
        store.delete(42, now=T)


def test_recent_history_newest_first():
    store = EventStore(config=ScoringConfig(history_limit=3))
    for hour in range(5):
        store.record("SUCCESS", T + hour * MILLIS_PER_HOUR)

    recent = store.recent_history()
    assert [event.id for event in recent] == [5, 4, 3]
    assert len(store.recent_history(limit=10)) == 5


def test_deltas_stay_consistent_with_total():
    store = EventStore()
    store.record("SUCCESS", T)
    store.record("SLEEP", T + MILLIS_PER_HOUR, 90)
    store.record("FAILURE", T + 2 * MILLIS_PER_HOUR)
    store.record("FAILURE", T + 5 * MILLIS_PER_HOUR)
    store.record("SUCCESS", T + MILLIS_PER_DAY)
    store.delete(3, now=T + MILLIS_PER_DAY)

    events = store.events()
    assert 60.0 + sum(event.score_delta for event in events) == pytest.approx(compute_total(events))


def test_store_seeded_from_events():
    seeded = [
        ActivityEvent(7, ActivityType.FAILURE, T),
        ActivityEvent(3, ActivityType.EXERCISE, T - 1000, 20),
    ]
    store = EventStore(events=seeded)
    assert [event.id for event in store.events()] == [3, 7]
    assert store.get(7).score_delta == pytest.approx(-0.20)
    assert store.record("SUCCESS", T + MILLIS_PER_HOUR).id == 8


def test_clear():
    store = EventStore()
    store.record("SUCCESS", T)
    store.clear()
    assert len(store) == 0
    assert store.total_score() == 60.0


def test_level_at_base_score_is_mild():
    store = EventStore()
    store.record("SUCCESS", T)
    store.record("FAILURE", T + 2 * MILLIS_PER_DAY)
    store.delete(2, now=T + 2 * MILLIS_PER_DAY)
    store.update(1, activity_type="SLEEP", value=60, now=T)

    assert store.total_score() == 60.0
    assert store.level() is ScoreLevel.LEVEL_4


def test_store_keeps_config_it_was_created_with():
    store = EventStore()
    store.record("EXERCISE", T, 30)
    try:
        set_config(ScoringConfig(exercise_points=0.5))
        store.record("EXERCISE", T + MILLIS_PER_DAY, 30)
    finally:
        reset_config()

    events = store.events()
    assert [event.score_delta for event in events] == pytest.approx([0.10, 0.10])
    assert 60.0 + sum(event.score_delta for event in events) == pytest.approx(store.total_score())


def test_seed_with_duplicate_ids_rejected():
    seeded = [
        ActivityEvent(1, ActivityType.FAILURE, T),
        ActivityEvent(1, ActivityType.EXERCISE, T + 1000, 30),
    ]
    with pytest.raises(ValueError, match="duplicate"):
        EventStore(events=seeded)


def test_record_rejects_non_integer_timestamps():
    store = EventStore()
    for bad in ("2025-06-10", 1.5, True):
        with pytest.raises(ValueError, match="timestamp"):
            store.record("SUCCESS", bad)
    event = store.record("SUCCESS", T)
    with pytest.raises(ValueError, match="timestamp"):
        store.update(event.id, timestamp="later", now=T)
    assert len(store) == 1


def test_concurrent_record_and_delete_stay_consistent():
    store = EventStore()
    now = T + MILLIS_PER_DAY
    recorded = []
    errors = []

    def writer(offset):
        try:
            for i in range(20):
                kind = ("SUCCESS", "FAILURE", "EXERCISE")[i % 3]
                value = 30 if kind == "EXERCISE" else 0
                recorded.append(store.record(kind, T + offset + i * 60_000, value))
        except Exception as exc:  # noqa: BLE001
            errors.append(exc)

    def deleter():
        try:
            for _ in range(40):
                for event in store.events()[:1]:
                    try:
                        store.delete(event.id, now=now)
                    except KeyError:
                        pass
        except Exception as exc:  # noqa: BLE001
            errors.append(exc)

    threads = [threading.Thread(target=writer, args=(k * 7,)) for k in range(3)]
    threads.append(threading.Thread(target=deleter))
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert len(recorded) == 60
    events = store.events()
    assert len({event.id for event in events}) == len(events)
    total = max(0.0, min(100.0, 60.0 + sum(event.score_delta for event in events)))
    assert total == pytest.approx(store.total_score())
