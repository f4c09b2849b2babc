"""
Tests for the navigation run log.

Verifies that rolls and navigation outcomes are captured, filtered,
summarized and serialized.
"""

from hexflower.data_models import DiceRoller
from hexflower.navigation import FlowerOptions, HexFlowerEngine
from hexflower.observability import (
    EventType,
    NavigationEvent,
    NavigationOutcome,
    RollEvent,
    RunLog,
    get_run_log,
)

from tests.helpers import ScriptedRollProvider, move_cursor


class TestRunLogSurface:
    """Basic RunLog behaviour."""

    def test_singleton(self, run_log):
        assert get_run_log() is run_log
        assert RunLog() is run_log

    def test_log_roll(self, run_log):
        event = run_log.log_roll("2d6", [3, 4], 7, reason="test")
        assert isinstance(event, RollEvent)
        assert event.event_type == EventType.ROLL
        assert event.sequence_number == 1
        assert run_log.get_rolls() == [event]

    def test_sequence_numbers_increase(self, run_log):
        first = run_log.log_roll("2d6", [1, 1], 2)
        second = run_log.log_custom("note", {"text": "hello"})
        assert (first.sequence_number, second.sequence_number) == (1, 2)
        assert run_log.get_events(since_sequence=1) == [second]

    def test_pause_drops_events(self, run_log):
        run_log.pause()
        run_log.log_roll("2d6", [1, 1], 2)
        assert run_log.is_paused()
        assert run_log.get_event_count() == 0
        run_log.resume()
        run_log.log_roll("2d6", [1, 1], 2)
        assert run_log.get_event_count() == 1

    def test_subscriber_receives_events(self, run_log):
        seen = []
        run_log.subscribe(seen.append)
        try:
            event = run_log.log_custom("note", {})
        finally:
            run_log.unsubscribe(seen.append)
        assert seen == [event]

    def test_failing_subscriber_is_contained(self, run_log):
        def broken(event):
            raise RuntimeError("boom")

        run_log.subscribe(broken)
        try:
            run_log.log_roll("2d6", [2, 2], 4)
        finally:
            run_log.unsubscribe(broken)
        assert run_log.get_event_count() == 1

    def test_seed(self, run_log):
        run_log.set_seed(1234)
        assert run_log.get_seed() == 1234
        assert run_log.get_summary()["seed"] == 1234


class TestNavigationCapture:
    """Engine activity shows up in the run log."""

    def test_roll_then_navigation(self, run_log):
        engine = HexFlowerEngine(dice_roller=DiceRoller(seed=5), run_log=run_log)
        flower = engine.create(FlowerOptions(name="Weather"))
        result = engine.navigate(flower.id)

        events = run_log.get_events()
        assert [e.event_type for e in events] == [EventType.ROLL, EventType.NAVIGATION]
        roll, nav = events
        assert roll.total == result.roll_total
        assert roll.notation == "2d6"
        assert roll.context == {"flower_id": flower.id}
        assert nav.flower_name == "Weather"
        assert nav.direction == result.direction.value
        assert nav.to_position == (result.position.q, result.position.r)

    def test_filter_by_flower(self, engine, run_log):
        first = engine.create(FlowerOptions(radius=1))
        second = engine.create(FlowerOptions(radius=1))
        move_cursor(engine, first.id, 7)
        move_cursor(engine, second.id, 7, 7)
        assert len(run_log.get_navigations(first.id)) == 1
        assert len(run_log.get_navigations(second.id)) == 2
        assert len(run_log.get_navigations()) == 3

    def test_summary_counts(self, engine, small_flower, roll_provider, run_log):
        roll_provider.queue(12)
        engine.navigate(small_flower.id)
        engine.navigate(small_flower.id, 12)
        summary = run_log.get_summary()
        assert summary["rolls"] == 1
        assert summary["navigations"] == 2
        assert summary["blocked"] == 1
        assert summary["wrapped"] == 0
        assert summary["total_events"] == 3

    def test_format_log(self, engine, small_flower, run_log):
        engine.navigate(small_flower.id, 7)
        text = run_log.format_log(event_types=[EventType.NAVIGATION])
        assert "=== Run Log ===" in text
        assert "NAV Small [7] d: (0, 0) -> (0, 1) (moved)" in text

    def test_format_log_for_one_flower(self, engine, run_log):
        first = engine.create(FlowerOptions(name="Weather", radius=1))
        second = engine.create(FlowerOptions(name="Mood", radius=1))
        engine.navigate(first.id, 7)
        engine.navigate(second.id, 12)
        text = run_log.format_log(flower_id=second.id)
        assert "NAV Mood" in text
        assert "NAV Weather" not in text

    def test_trail_skips_blocked_attempts(self, engine, small_flower, run_log):
        move_cursor(engine, small_flower.id, 12, 12, 7)
        assert run_log.get_trail(small_flower.id) == [(0, 0), (0, -1), (0, 0)]

    def test_trail_of_unknown_flower(self, run_log):
        assert run_log.get_trail("missing") == []

    def test_direction_counts(self, engine, flower, run_log):
        move_cursor(engine, flower.id, 7, 6, 12, 2)
        assert run_log.get_direction_counts(flower.id) == {"a": 1, "b": 1, "d": 2}
        summary = run_log.get_summary()
        assert summary["directions"] == {"a": 1, "b": 1, "d": 2}
        assert summary["flowers"] == 1


class TestRunLogSerialization:
    """Save and reload a run log."""

    def test_save_and_load(self, run_log, tmp_path):
        engine = HexFlowerEngine(roll_provider=ScriptedRollProvider([4]), run_log=run_log)
        flower = engine.create(FlowerOptions(radius=1))
        engine.navigate(flower.id)
        engine.navigate(flower.id, 4)
        run_log.set_seed(77)

        path = tmp_path / "run_log.json"
        run_log.save(str(path))
        loaded = RunLog.load(str(path))

        assert loaded.get_seed() == 77
        rolls = loaded.get_rolls()
        navigations = loaded.get_navigations()
        assert len(rolls) == 1 and rolls[0].total == 4
        assert len(navigations) == 2
        assert isinstance(navigations[0], NavigationEvent)
        assert navigations[0].to_position == (1, 0)
        assert navigations[1].outcome == NavigationOutcome.BLOCKED

    def test_navigation_event_dict(self):
        event = NavigationEvent(
            flower_id="f1",
            flower_name="Weather",
            roll_total=12,
            direction="a",
            from_position=(0, -1),
            to_position=(0, 1),
            outcome=NavigationOutcome.WRAPPED,
        )
        data = event.to_dict()
        assert data["event_type"] == "navigation"
        assert data["from_position"] == [0, -1]
        assert data["outcome"] == "wrapped"
        restored = NavigationEvent.from_dict(data)
        assert restored.to_position == (0, 1)
        assert restored.outcome == NavigationOutcome.WRAPPED
