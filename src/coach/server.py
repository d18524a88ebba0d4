"""MCP server exposing the coach tools, tip resource and reflection prompt."""

import logging
from typing import Annotated

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.prompts import base
from pydantic import BaseModel, Field

from . import records
from .config import Config
from .core.models import Exercise, Workout, WorkoutType
from .core.tips import daily_tip, reflection_messages
from .ports.entity_store import EntityStore
from .workflows import recap_day, resolve_date, start_day, workout_stats

logger = logging.getLogger(__name__)

SERVER_NAME = "coach"

Id = Annotated[int, Field(ge=1, description="Record id")]
IsoDate = Annotated[str, Field(description="Date in YYYY-MM-DD format")]
OptionalDate = Annotated[str | None, Field(description="Date in YYYY-MM-DD format")]
OptionalText = Annotated[str | None, Field(min_length=3)]
Tags = Annotated[list[str] | None, Field(description="Free-form tags")]
Minutes = Annotated[int | None, Field(ge=1, description="Duration in minutes")]
Miles = Annotated[float | None, Field(gt=0, description="Distance in miles")]
HeartRate = Annotated[int | None, Field(gt=0, le=220, description="Average heart rate in BPM")]
Rpe = Annotated[int | None, Field(ge=1, le=10, description="Rate of perceived exertion (1-10)")]
Days = Annotated[int | None, Field(ge=1, description="Only include the last N days")]


class ExerciseInput(BaseModel):
    """One exercise within a functional workout."""

    name: str = Field(min_length=1, description="Exercise name")
    sets: int | None = Field(default=None, ge=1)
    reps: str | None = Field(default=None, description="Reps per set, e.g. '10' or '8-12'")
    weight_lbs: float | None = Field(default=None, ge=0)
    rest_sec: int | None = Field(default=None, ge=0)
    notes: str | None = None

    def to_exercise(self) -> Exercise:
        return Exercise(**self.model_dump())


def _optional_date(value: str | None):
    return resolve_date(value) if value else None


def _exercises(items: list[ExerciseInput] | None) -> list[Exercise] | None:
    if items is None:
        return None
    return [item.to_exercise() for item in items]


def create_server(store: EntityStore, config: Config | None = None) -> FastMCP:
    """Build a FastMCP server whose tools all operate on `store`."""
    config = config or Config()
    default_lookback = config.briefing_lookback_days
    mcp = FastMCP(SERVER_NAME)

    # ============== Core engines ==============

    @mcp.tool(
        name="start-day",
        description="Morning briefing: recent recap, overdue and upcoming items, notes and workouts. "
        "Saved as a note tagged daily-briefing.",
    )
    def start_day_tool(
        lookback_days: Annotated[int, Field(ge=1, le=7, description="Days of context to include")] = default_lookback,
    ) -> str:
        return start_day(store, lookback_days)

    @mcp.tool(
        name="recap-day",
        description="Recap of everything recorded on a day (default today), saved as a note tagged recap.",
    )
    def recap_day_tool(date: OptionalDate = None) -> str:
        return recap_day(store, resolve_date(date))

    @mcp.tool(name="workout-stats", description="Workout statistics, streak and trend analysis.")
    def workout_stats_tool(
        days: Days = None,
        type: WorkoutType | None = None,
    ) -> str:
        return workout_stats(store, days=days, type=type)

    # ============== Goals ==============

    @mcp.tool(name="add-goal", description="Add a new goal")
    def add_goal(
        goal: Annotated[str, Field(min_length=3)],
        due_date: OptionalDate = None,
        metadata: dict | None = None,
    ) -> str:
        return records.add_goal(store, goal, _optional_date(due_date), metadata)

    @mcp.tool(name="update-goal", description="Update an existing goal")
    def update_goal(
        id: Id,
        text: OptionalText = None,
        due_date: OptionalDate = None,
        metadata: dict | None = None,
        completed: bool | None = None,
    ) -> str:
        return records.update_goal(store, id, text, _optional_date(due_date), metadata, completed)

    @mcp.tool(name="delete-goal", description="Delete a goal by id")
    def delete_goal(id: Id) -> str:
        return records.delete_goal(store, id)

    @mcp.tool(name="list-goals", description="List all goals")
    def list_goals() -> str:
        return records.list_goals(store)

    # ============== Todos ==============

    @mcp.tool(name="add-todo", description="Add a new todo")
    def add_todo(
        todo: Annotated[str, Field(min_length=3)],
        due_date: OptionalDate = None,
        tags: Tags = None,
    ) -> str:
        return records.add_todo(store, todo, _optional_date(due_date), tags)

    @mcp.tool(name="update-todo", description="Update an existing todo")
    def update_todo(
        id: Id,
        text: OptionalText = None,
        due_date: OptionalDate = None,
        tags: Tags = None,
        completed: bool | None = None,
    ) -> str:
        return records.update_todo(store, id, text, _optional_date(due_date), tags, completed)

    @mcp.tool(name="delete-todo", description="Delete a todo by id")
    def delete_todo(id: Id) -> str:
        return records.delete_todo(store, id)

    @mcp.tool(name="list-todos", description="List all todos")
    def list_todos() -> str:
        return records.list_todos(store)

    # ============== Notes ==============

    @mcp.tool(name="add-note", description="Add a new note")
    def add_note(note: Annotated[str, Field(min_length=3)], tags: Tags = None) -> str:
        return records.add_note(store, note, tags)

    @mcp.tool(name="update-note", description="Update an existing note")
    def update_note(
        id: Id,
        text: OptionalText = None,
        tags: Tags = None,
    ) -> str:
        return records.update_note(store, id, text, tags)

    @mcp.tool(name="delete-note", description="Delete a note by id")
    def delete_note(id: Id) -> str:
        return records.delete_note(store, id)

    @mcp.tool(name="list-notes", description="List notes, newest first, optionally filtered by tag")
    def list_notes(tag: str | None = None) -> str:
        return records.list_notes(store, tag)

    @mcp.tool(
        name="remember-convo",
        description="Save a summary of this conversation so it shows up in today's recap",
    )
    def remember_convo(
        conversation_summary: Annotated[str, Field(min_length=10)],
        additional_tags: Tags = None,
    ) -> str:
        return records.remember_convo(store, conversation_summary, additional_tags)

    @mcp.tool(name="user-summary", description="Everything known about the user: goals and notes")
    def user_summary() -> str:
        return records.user_summary(store)

    # ============== Workouts ==============

    @mcp.tool(
        name="add-workout",
        description="Log a running, cycling or functional workout. Exercises are kept for functional workouts.",
    )
    def add_workout(
        type: WorkoutType,
        date: IsoDate,
        duration_mins: Minutes = None,
        distance_miles: Miles = None,
        avg_heart_rate: HeartRate = None,
        rpe: Rpe = None,
        notes: str | None = None,
        exercises: list[ExerciseInput] | None = None,
    ) -> str:
        workout = Workout(
            id=0,
            type=type,
            date=resolve_date(date),
            duration_mins=duration_mins,
            distance_miles=distance_miles,
            avg_heart_rate=avg_heart_rate,
            rpe=rpe,
            notes=notes,
        )
        return records.add_workout(store, workout, _exercises(exercises))

    @mcp.tool(name="update-workout", description="Update a workout; a new exercise list replaces the old one")
    def update_workout(
        id: Id,
        type: WorkoutType | None = None,
        date: OptionalDate = None,
        duration_mins: Minutes = None,
        distance_miles: Miles = None,
        avg_heart_rate: HeartRate = None,
        rpe: Rpe = None,
        notes: str | None = None,
        exercises: list[ExerciseInput] | None = None,
    ) -> str:
        changes = {
            "type": type,
            "date": _optional_date(date),
            "duration_mins": duration_mins,
            "distance_miles": distance_miles,
            "avg_heart_rate": avg_heart_rate,
            "rpe": rpe,
            "notes": notes,
        }
        return records.update_workout(store, id, changes, _exercises(exercises))

    @mcp.tool(name="delete-workout", description="Delete a workout and its exercises")
    def delete_workout(id: Id) -> str:
        return records.delete_workout(store, id)

    @mcp.tool(name="list-workouts", description="List workouts, newest first")
    def list_workouts(
        type: WorkoutType | None = None,
        days: Days = None,
        limit: Annotated[int | None, Field(ge=1, le=50)] = None,
    ) -> str:
        return records.list_workouts(store, type=type, days=days, limit=limit)

    # ============== Resources & prompts ==============

    @mcp.resource("tip://daily", name="daily-tip", description="A daily coaching tip", mime_type="text/plain")
    def tip() -> str:
        return daily_tip()

    @mcp.prompt(name="daily-reflection", description="Open a guided reflection on the day")
    def daily_reflection(feeling: str | None = None) -> list[base.Message]:
        messages = {"assistant": base.AssistantMessage, "user": base.UserMessage}
        return [messages[role](text) for role, text in reflection_messages(feeling)]

    logger.debug(f"Registered coach tools on MCP server {SERVER_NAME!r}")
    return mcp
