"""Entity store interface."""

from collections.abc import Iterable
from datetime import date
from typing import Any, Protocol

from coach.core.models import Exercise, Goal, Note, Todo, Workout, WorkoutType


class EntityStore(Protocol):
    """Interface for durable goal/todo/note/workout storage.

    Update methods take a partial mapping of column name to new value and
    return False when no row has the given id.
    """

    # Goals

    def add_goal(self, text: str, due_date: date | None = None, metadata: dict | None = None) -> int:
        ...

    def update_goal(self, goal_id: int, changes: dict[str, Any]) -> bool:
        ...

    def delete_goal(self, goal_id: int) -> bool:
        ...

    def list_goals(self, pending_only: bool = False) -> list[Goal]:
        """All goals by id, or incomplete goals ordered by due date then creation."""
        ...

    def goals_created_on(self, day: date) -> list[Goal]:
        ...

    # Todos

    def add_todo(self, text: str, due_date: date | None = None, tags: list[str] | None = None) -> int:
        ...

    def update_todo(self, todo_id: int, changes: dict[str, Any]) -> bool:
        ...

    def delete_todo(self, todo_id: int) -> bool:
        ...

    def list_todos(self, pending_only: bool = False) -> list[Todo]:
        ...

    def todos_created_on(self, day: date) -> list[Todo]:
        ...

    # Notes

    def add_note(self, text: str, tags: list[str] | None = None) -> int:
        ...

    def update_note(self, note_id: int, changes: dict[str, Any]) -> bool:
        ...

    def delete_note(self, note_id: int) -> bool:
        ...

    def list_notes(self, tag: str | None = None) -> list[Note]:
        """Newest first, optionally only notes carrying a tag."""
        ...

    def notes_created_on(self, day: date) -> list[Note]:
        ...

    def notes_since(self, day: date, exclude_tag: str | None = None, limit: int | None = None) -> list[Note]:
        ...

    def latest_note_tagged(self, tag: str) -> Note | None:
        ...

    # Workouts

    def add_workout(self, workout: Workout, exercises: Iterable[Exercise] = ()) -> int:
        """Insert a workout and its exercises atomically. workout.id is ignored."""
        ...

    def get_workout(self, workout_id: int) -> Workout | None:
        ...

    def update_workout(
        self,
        workout_id: int,
        changes: dict[str, Any],
        exercises: list[Exercise] | None = None,
    ) -> bool:
        """Apply changes; a non-None exercise list replaces the existing set."""
        ...

    def delete_workout(self, workout_id: int) -> bool:
        ...

    def list_workouts(
        self,
        type: WorkoutType | None = None,
        since: date | None = None,
        limit: int | None = None,
    ) -> list[Workout]:
        """Newest first by workout date, then by creation."""
        ...

    def workouts_on(self, day: date) -> list[Workout]:
        ...

    def exercises_for(self, workout_ids: Iterable[int]) -> dict[int, list[Exercise]]:
        """Exercises grouped by workout id, in insertion order."""
        ...
