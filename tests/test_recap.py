"""Tests for the daily recap formatting."""

from datetime import date, datetime

import pytest

from coach.core.models import Exercise, Goal, Note, Todo, Workout, WorkoutType
from coach.core.recap import (
    RecapData,
    format_recap,
    format_recap_confirmation,
    productivity_score,
    split_conversations,
)


@pytest.fixture
def generated_at():
    return datetime(2025, 1, 15, 21, 0)


def _recap(today, generated_at, **overrides):
    args = dict(date=today, generated_at=generated_at, goals=[], todos=[], notes=[], workouts=[])
    args.update(overrides)
    return RecapData(**args)


class TestProductivityScore:
    def test_zero_total_is_zero(self):
        assert productivity_score(0, 0) == 0

    def test_rounds_percentage(self):
        assert productivity_score(1, 3) == 33
        assert productivity_score(2, 3) == 67

    def test_all_done(self):
        assert productivity_score(4, 4) == 100


class TestSplitConversations:
    def test_needs_both_tags(self, today):
        convo = Note(id=1, text="talked", tags=["conversation", "date-2025-01-15"])
        other_day = Note(id=2, text="old talk", tags=["conversation", "date-2025-01-14"])
        plain = Note(id=3, text="thought", tags=["idea"])

        conversations, regular = split_conversations([convo, other_day, plain], today)

        assert conversations == [convo]
        assert regular == [other_day, plain]


class TestRecapData:
    def test_counts(self, today, generated_at):
        data = _recap(
            today,
            generated_at,
            goals=[Goal(id=1, text="g", completed=True)],
            todos=[Todo(id=1, text="t"), Todo(id=2, text="u", completed=True)],
            notes=[Note(id=1, text="n")],
        )

        assert data.total_items == 4
        assert data.completed_items == 2
        assert data.productivity == 50

    def test_completion_placeholders_start_empty(self, today, generated_at):
        data = _recap(today, generated_at)
        assert data.completed_goals == []
        assert data.completed_todos == []


class TestFormatRecap:
    def test_empty_day(self, today, generated_at):
        output = format_recap(_recap(today, generated_at))

        assert output == "# Daily Recap for 2025-01-15\nGenerated on: 2025-01-15T21:00:00"

    def test_goal_and_todo_sections(self, today, generated_at):
        data = _recap(
            today,
            generated_at,
            goals=[Goal(id=2, text="Run a 10k", due_date=date(2025, 3, 1))],
            todos=[Todo(id=5, text="Buy shoes", tags=["errand"], completed=True)],
        )
        output = format_recap(data)

        assert "### New Goals Created Today (1)" in output
        assert "- #2: Run a 10k (due 2025-03-01) [⏳ In Progress]" in output
        assert "## Tasks & Todos" in output
        assert "- #5: Buy shoes [errand] [✓ COMPLETED]" in output

    def test_conversations_separate_from_notes(self, today, generated_at):
        notes = [
            Note(id=1, text="Conversation from 2025-01-15:\n\nplans", tags=["conversation", "date-2025-01-15"]),
            Note(id=2, text="felt great", tags=["mood"]),
        ]
        output = format_recap(_recap(today, generated_at, notes=notes))

        assert "## Notes & Observations (1)" in output
        assert "- #2: felt great [mood]" in output
        assert "## Conversations & Discussions (1)" in output

    def test_functional_workout_lists_exercises(self, today, generated_at):
        workout = Workout(id=8, type=WorkoutType.FUNCTIONAL, date=today, duration_mins=45, rpe=7)
        exercises = {8: [Exercise(name="Kettlebell Swings", sets=3, reps="20", weight_lbs=35)]}
        output = format_recap(_recap(today, generated_at, workouts=[workout], exercises=exercises))

        assert "## Fitness & Workouts (1)" in output
        assert "- #8: FUNCTIONAL (45 minutes, RPE 7/10)" in output
        assert "    1. Kettlebell Swings - 3x20, 35 lbs" in output
        assert "- Total workout time: 45 minutes" in output

    def test_daily_summary(self, today, generated_at):
        data = _recap(
            today,
            generated_at,
            todos=[Todo(id=1, text="a", completed=True), Todo(id=2, text="b")],
            workouts=[Workout(id=1, type=WorkoutType.RUNNING, date=today, distance_miles=5.25)],
        )
        output = format_recap(data)

        assert "- Total new items: 3" in output
        assert "- Items completed: 1" in output
        assert "- Workouts completed: 1" in output
        assert "- Total distance: 5.25 miles" in output
        assert "- Productivity score: 33%" in output


class TestFormatRecapConfirmation:
    def test_quiet_day(self, today, generated_at):
        message = format_recap_confirmation(_recap(today, generated_at))
        assert message.startswith("No activities found for 2025-01-15.")
        assert "recap note" in message

    def test_summary_counts(self, today, generated_at):
        data = _recap(
            today,
            generated_at,
            notes=[Note(id=1, text="talk", tags=["conversation", "date-2025-01-15"])],
            workouts=[Workout(id=1, type=WorkoutType.CYCLING, date=today)],
        )
        message = format_recap_confirmation(data)

        assert message.startswith("✓ Daily recap for 2025-01-15 complete!")
        assert "- 2 total activities" in message
        assert "- 1 workouts completed" in message
        assert "- 1 conversations recorded" in message
        assert '"date-2025-01-15"' in message
