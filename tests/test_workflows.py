"""Tests for the shared workflow layer."""

from datetime import date, datetime, timedelta
from unittest.mock import MagicMock

import pytest

from coach.adapters.sqlite_store import SqliteEntityStore, StoreError
from coach.config import Config
from coach.core.models import Exercise, Workout, WorkoutType
from coach.workflows import (
    BRIEFING_SAVED_FOOTER,
    open_store,
    recap_day,
    resolve_date,
    start_day,
    workout_stats,
)


def _log(store, type, day, **kwargs):
    exercises = kwargs.pop("exercises", ())
    return store.add_workout(Workout(id=0, type=type, date=day, **kwargs), exercises)


class TestOpenStore:
    def test_uses_configured_path(self, tmp_path):
        store = open_store(Config(database_path=str(tmp_path / "db.sqlite")))
        assert isinstance(store, SqliteEntityStore)
        assert store.db_path == tmp_path / "db.sqlite"


class TestResolveDate:
    def test_defaults_to_given_day(self, today):
        assert resolve_date(None, today) == today
        assert resolve_date("", today) == today

    def test_parses_iso(self):
        assert resolve_date("2025-02-01") == date(2025, 2, 1)

    def test_rejects_garbage(self):
        with pytest.raises(ValueError, match="expected YYYY-MM-DD"):
            resolve_date("next tuesday")


class TestStartDay:
    @pytest.mark.parametrize("lookback", range(1, 8))
    def test_empty_store_gives_clear_horizon(self, store, today, lookback):
        output = start_day(store, lookback, today=today)

        assert "## Clear Horizon" in output
        assert output.endswith(BRIEFING_SAVED_FOOTER)
        saved = store.list_notes("daily-briefing")
        assert len(saved) == 1
        assert saved[0].tags == ["daily-briefing", "date-2025-01-15", "start-day"]

    @pytest.mark.parametrize("lookback", [0, 8, -1])
    def test_rejects_out_of_range_lookback(self, store, today, lookback):
        with pytest.raises(ValueError):
            start_day(store, lookback, today=today)
        assert store.list_notes() == []

    def test_buckets_from_store(self, store, today):
        store.add_todo("late", due_date=today - timedelta(days=1))
        store.add_todo("now", due_date=today)
        store.add_todo("soon", due_date=today + timedelta(days=3))
        store.add_todo("later", due_date=today + timedelta(days=4))
        done = store.add_todo("done late", due_date=today - timedelta(days=3))
        store.update_todo(done, {"completed": True})

        output = start_day(store, today=today)

        assert "- #1: late (1 days overdue)" in output
        assert "### Todos Due Today (1)" in output
        assert "- #3: soon (due 2025-01-18)" in output
        assert "later" not in output
        assert "done late" not in output
        assert "- Total pending items: 4" in output
        assert "- Items needing attention today: 2" in output

    def test_uses_latest_recap_and_skips_recaps_in_notes(self, store, clock, today):
        clock.now = datetime(2025, 1, 14, 21, 0)
        recap_day(store, date(2025, 1, 14))
        store.add_note("Idea: try morning runs")
        clock.now = datetime(2025, 1, 15, 7, 0)

        output = start_day(store, today=today)

        assert "Your most recent recap was from 2025-01-14." in output
        assert "- Recent notes for context: 1" in output
        assert "Idea: try morning runs" in output

    def test_streak_and_recent_workouts(self, store, today):
        for offset in range(3):
            _log(store, WorkoutType.RUNNING, today - timedelta(days=offset + 1), duration_mins=30)

        output = start_day(store, today=today)

        assert "- Current workout streak: 3 days" in output
        assert "Your last workout was yesterday." in output

    def test_unparseable_workout_date_renders_placeholder(self, store, today):
        workout_id = _log(store, WorkoutType.RUNNING, today, duration_mins=30)
        store.connection.execute("UPDATE workouts SET date = 'tomorrow' WHERE id = ?", (workout_id,))

        output = start_day(store, today=today)

        assert f"- #{workout_id}: unknown date RUNNING (30 min)" in output
        assert "- Workout streak: 0 days" in output

    def test_store_failure_propagates(self, today):
        broken = MagicMock()
        broken.latest_note_tagged.side_effect = StoreError("disk gone")

        with pytest.raises(StoreError):
            start_day(broken, today=today)
        broken.add_note.assert_not_called()


class TestRecapDay:
    def test_writes_one_recap_note(self, store, today):
        message = recap_day(store, today)

        assert "quiet day" in message
        notes = store.list_notes("recap")
        assert len(notes) == 1
        assert notes[0].tags == ["recap", "date-2025-01-15", "daily-summary"]

    def test_defaults_to_today(self, store):
        recap_day(store)
        assert store.list_notes("recap")[0].tags[1] == f"date-{date.today().isoformat()}"

    def test_collects_items_created_that_day(self, store, clock, today):
        clock.now = datetime(2025, 1, 14, 12, 0)
        store.add_goal("Yesterday's goal")
        clock.now = datetime(2025, 1, 15, 12, 0)
        goal_id = store.add_goal("Run a half marathon")
        store.update_goal(goal_id, {"completed": True})
        store.add_todo("Stretch")
        store.add_note("Conversation from 2025-01-15:\n\nplans", ["conversation", "date-2025-01-15"])

        message = recap_day(store, today, now=datetime(2025, 1, 15, 21, 0))

        assert "- 3 total activities" in message
        assert "- 1 items completed" in message
        assert "- 1 conversations recorded" in message
        recap = store.latest_note_tagged("recap").text
        assert "Yesterday's goal" not in recap
        assert "- #2: Run a half marathon [✓ COMPLETED]" in recap
        assert "- Productivity score: 33%" in recap

    def test_kettlebell_workout_end_to_end(self, store, today):
        _log(
            store,
            WorkoutType.FUNCTIONAL,
            today,
            duration_mins=30,
            exercises=[Exercise(name="Kettlebell Swings", sets=3, reps="20", weight_lbs=35)],
        )

        message = recap_day(store, today)

        assert "- 1 workouts completed" in message
        recap = store.latest_note_tagged("recap").text
        assert "## Fitness & Workouts (1)" in recap
        assert "    1. Kettlebell Swings - 3x20, 35 lbs" in recap

    def test_workout_logged_later_counts_on_its_own_date(self, store, clock, today):
        clock.now = datetime(2025, 1, 16, 8, 0)
        _log(store, WorkoutType.RUNNING, today, distance_miles=4.0)

        recap_day(store, today)

        assert "Total distance: 4 miles" in store.latest_note_tagged("recap").text


class TestWorkoutStats:
    def test_no_workouts_does_not_write(self, store, today):
        assert workout_stats(store, days=30, today=today) == "No workouts found in the last 30 days."
        assert store.list_notes() == []

    def test_rejects_non_positive_days(self, store, today):
        with pytest.raises(ValueError):
            workout_stats(store, days=0, today=today)

    def test_streak_of_three(self, store, today):
        for offset in (0, 1, 2, 5):
            _log(store, WorkoutType.RUNNING, today - timedelta(days=offset))

        output = workout_stats(store, today=today)

        assert "- Current streak: 3 days" in output
        assert "- Total workouts: 4" in output

    def test_rpe_trend_working_harder(self, store, today):
        _log(store, WorkoutType.RUNNING, today - timedelta(days=2), rpe=8)
        _log(store, WorkoutType.RUNNING, today - timedelta(days=10), rpe=5)

        output = workout_stats(store, days=14, today=today)

        assert "**Trend Analysis:**" in output
        assert "- Perceived effort: +3.0 RPE (working harder) ↑" in output

    def test_trend_halves_honor_type_filter(self, store, today):
        _log(store, WorkoutType.RUNNING, today - timedelta(days=1), rpe=6)
        _log(store, WorkoutType.RUNNING, today - timedelta(days=3), rpe=8)
        _log(store, WorkoutType.CYCLING, today - timedelta(days=2), rpe=1)
        _log(store, WorkoutType.RUNNING, today - timedelta(days=9), rpe=4)
        _log(store, WorkoutType.RUNNING, today - timedelta(days=12), rpe=4)

        output = workout_stats(store, days=14, type="running", today=today)

        assert "- Total workouts: 4" in output
        assert "- Perceived effort: +3.0 RPE (working harder) ↑" in output

    def test_short_window_has_no_trend(self, store, today):
        _log(store, WorkoutType.RUNNING, today, rpe=8)
        assert "Trend Analysis" not in workout_stats(store, days=13, today=today)

    def test_type_filter(self, store, today):
        _log(store, WorkoutType.RUNNING, today)
        _log(store, WorkoutType.CYCLING, today)

        output = workout_stats(store, type="cycling", today=today)

        assert output.startswith("**CYCLING Workout Statistics (All time)**")
        assert "- Total workouts: 1" in output
        assert workout_stats(store, type=WorkoutType.FUNCTIONAL, today=today) == (
            "No functional workouts found."
        )
