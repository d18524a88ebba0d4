"""Tests for the SQLite entity store."""

import sqlite3
from datetime import date, datetime, timedelta

import pytest

from coach.adapters.sqlite_store import (
    SqliteEntityStore,
    StoreError,
    decode_tags,
    encode_tags,
)
from coach.core.models import Exercise, Workout, WorkoutType


def _workout(type=WorkoutType.RUNNING, day=date(2025, 1, 15), **kwargs):
    return Workout(id=0, type=type, date=day, **kwargs)


class TestTagEncoding:
    def test_roundtrip(self):
        assert decode_tags(encode_tags(["a", "b"])) == ["a", "b"]

    def test_none_stays_null(self):
        assert encode_tags(None) is None
        assert decode_tags(None) == []

    def test_malformed_decodes_to_empty(self):
        assert decode_tags("not json") == []
        assert decode_tags('{"a": 1}') == []


class TestLifecycle:
    def test_creates_parent_directories(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "coach.sqlite"
        with SqliteEntityStore(path) as s:
            s.add_note("hello")
        assert path.exists()

    def test_unopenable_path_raises_store_error(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("")
        s = SqliteEntityStore(blocker / "coach.sqlite")
        with pytest.raises(StoreError):
            s.list_goals()

    def test_migrates_goals_without_completed(self, tmp_path):
        path = tmp_path / "old.sqlite"
        conn = sqlite3.connect(path)
        conn.execute(
            "CREATE TABLE goals (id INTEGER PRIMARY KEY AUTOINCREMENT, text TEXT NOT NULL, "
            "due_date TEXT, metadata TEXT, created_at TEXT NOT NULL DEFAULT (datetime('now')))"
        )
        conn.execute("INSERT INTO goals (text) VALUES ('legacy goal')")
        conn.commit()
        conn.close()

        with SqliteEntityStore(path) as s:
            goals = s.list_goals()

        assert [g.text for g in goals] == ["legacy goal"]
        assert goals[0].completed is False

    def test_reopen_keeps_data(self, tmp_path):
        path = tmp_path / "coach.sqlite"
        with SqliteEntityStore(path) as s:
            s.add_goal("persist me")
        with SqliteEntityStore(path) as s:
            assert [g.text for g in s.list_goals()] == ["persist me"]


class TestGoalsAndTodos:
    def test_created_at_uses_clock(self, store, clock):
        goal_id = store.add_goal("Read more", metadata={"area": "growth"})
        goal = store.list_goals()[0]

        assert goal.id == goal_id
        assert goal.created_at == clock.now
        assert goal.metadata == {"area": "growth"}

    def test_update_partial(self, store, today):
        goal_id = store.add_goal("Read more")
        assert store.update_goal(goal_id, {"due_date": today, "completed": True})

        goal = store.list_goals()[0]
        assert goal.text == "Read more"
        assert goal.due_date == today
        assert goal.completed is True

    def test_update_missing_returns_false(self, store):
        assert store.update_todo(99, {"text": "nope"}) is False

    def test_update_rejects_unknown_columns(self, store):
        todo_id = store.add_todo("x")
        with pytest.raises(ValueError):
            store.update_todo(todo_id, {"created_at": "2020-01-01"})

    def test_delete(self, store):
        todo_id = store.add_todo("Take out trash")
        assert store.delete_todo(todo_id) is True
        assert store.delete_todo(todo_id) is False
        assert store.list_todos() == []

    def test_pending_ordered_by_due_date_undated_last(self, store, today):
        store.add_todo("undated")
        store.add_todo("later", due_date=today + timedelta(days=5))
        store.add_todo("sooner", due_date=today)
        done = store.add_todo("done", due_date=today)
        store.update_todo(done, {"completed": True})

        assert [t.text for t in store.list_todos(pending_only=True)] == ["sooner", "later", "undated"]

    def test_created_on_matches_local_day(self, store, clock, today):
        clock.now = datetime(2025, 1, 14, 23, 59)
        store.add_todo("yesterday")
        clock.now = datetime(2025, 1, 15, 0, 1)
        store.add_todo("today")

        assert [t.text for t in store.todos_created_on(today)] == ["today"]

    def test_unparseable_due_date_reads_as_none(self, store):
        todo_id = store.add_todo("bad date")
        store.connection.execute("UPDATE todos SET due_date = 'someday' WHERE id = ?", (todo_id,))

        assert store.list_todos()[0].due_date is None

    def test_unparseable_workout_date_reads_as_none(self, store, today):
        workout_id = store.add_workout(_workout(day=today))
        store.connection.execute("UPDATE workouts SET date = 'tomorrow' WHERE id = ?", (workout_id,))

        workout = store.get_workout(workout_id)
        assert workout.date is None
        assert workout.date_label == "unknown date"


class TestNotes:
    def test_tag_filter_is_exact(self, store):
        store.add_note("recap note", ["recap", "date-2025-01-15"])
        store.add_note("not a recap", ["recap-draft"])
        store.add_note("untagged")

        assert [n.text for n in store.list_notes("recap")] == ["recap note"]

    def test_tag_filter_escapes_wildcards(self, store):
        store.add_note("percent", ["100%"])
        store.add_note("other", ["1000"])

        assert [n.text for n in store.list_notes("100%")] == ["percent"]

    def test_newest_first(self, store, clock):
        store.add_note("first")
        clock.now += timedelta(minutes=1)
        store.add_note("second")

        assert [n.text for n in store.list_notes()] == ["second", "first"]

    def test_notes_since_excludes_tag_and_limits(self, store, clock, today):
        clock.now = datetime(2025, 1, 10, 8, 0)
        store.add_note("too old")
        clock.now = datetime(2025, 1, 13, 8, 0)
        for i in range(3):
            clock.now += timedelta(minutes=1)
            store.add_note(f"note {i}")
        store.add_note("a recap", ["recap"])

        notes = store.notes_since(today - timedelta(days=3), exclude_tag="recap", limit=2)

        assert [n.text for n in notes] == ["note 2", "note 1"]

    def test_latest_note_tagged(self, store, clock):
        store.add_note("old recap", ["recap"])
        clock.now += timedelta(hours=1)
        store.add_note("new recap", ["recap"])

        assert store.latest_note_tagged("recap").text == "new recap"
        assert store.latest_note_tagged("missing") is None


class TestWorkouts:
    def test_functional_workout_stores_exercises(self, store):
        workout_id = store.add_workout(
            _workout(WorkoutType.FUNCTIONAL, duration_mins=40),
            [Exercise(name="Kettlebell Swings", sets=3, reps="20", weight_lbs=35)],
        )

        exercises = store.exercises_for([workout_id])[workout_id]
        assert exercises[0].name == "Kettlebell Swings"
        assert exercises[0].reps == "20"
        assert exercises[0].weight_lbs == 35

    def test_exercises_ignored_for_cardio(self, store):
        workout_id = store.add_workout(_workout(), [Exercise(name="Stride drills")])
        assert store.exercises_for([workout_id]) == {}

    def test_delete_cascades_to_exercises(self, store):
        workout_id = store.add_workout(
            _workout(WorkoutType.FUNCTIONAL), [Exercise(name="Push-ups"), Exercise(name="Plank")]
        )

        assert store.delete_workout(workout_id) is True

        count = store.connection.execute("SELECT COUNT(*) FROM exercises").fetchone()[0]
        assert count == 0

    def test_failed_exercise_insert_rolls_back_workout(self, store):
        with pytest.raises(StoreError):
            store.add_workout(_workout(WorkoutType.FUNCTIONAL), [Exercise(name=None)])

        assert store.list_workouts() == []

    def test_update_replaces_exercises(self, store):
        workout_id = store.add_workout(_workout(WorkoutType.FUNCTIONAL), [Exercise(name="Old")])

        store.update_workout(workout_id, {"rpe": 8}, [Exercise(name="New A"), Exercise(name="New B")])

        assert store.get_workout(workout_id).rpe == 8
        names = [e.name for e in store.exercises_for([workout_id])[workout_id]]
        assert names == ["New A", "New B"]

    def test_update_without_exercises_keeps_them(self, store):
        workout_id = store.add_workout(_workout(WorkoutType.FUNCTIONAL), [Exercise(name="Keep")])
        store.update_workout(workout_id, {"notes": "felt strong"})

        assert [e.name for e in store.exercises_for([workout_id])[workout_id]] == ["Keep"]

    def test_update_missing_workout(self, store):
        assert store.update_workout(42, {"rpe": 5}) is False

    def test_list_filters_and_orders(self, store, today):
        store.add_workout(_workout(day=today - timedelta(days=10)))
        store.add_workout(_workout(WorkoutType.CYCLING, day=today - timedelta(days=1)))
        store.add_workout(_workout(day=today))

        assert [w.date for w in store.list_workouts()] == [
            today,
            today - timedelta(days=1),
            today - timedelta(days=10),
        ]
        assert len(store.list_workouts(type=WorkoutType.RUNNING)) == 2
        assert len(store.list_workouts(since=today - timedelta(days=7))) == 2
        assert len(store.list_workouts(limit=1)) == 1

    def test_workouts_on_uses_workout_date(self, store, today):
        store.add_workout(_workout(day=today - timedelta(days=1)))
        store.add_workout(_workout(day=today))

        assert [w.date for w in store.workouts_on(today)] == [today]
