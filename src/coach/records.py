"""Single-record tools: add, update, delete and list for each entity.

Every function returns the confirmation text shown to the user. A missing id
is reported in the text, not raised.
"""

from datetime import date, timedelta
from typing import Any

from .core.models import (
    TAG_CONVERSATION,
    Exercise,
    Workout,
    WorkoutType,
    date_tag,
    format_number,
)
from .ports.entity_store import EntityStore

NO_UPDATES = "No updates provided. Please specify at least one field to change."


def _changes(**fields: Any) -> dict[str, Any]:
    """Keep only the fields the caller actually supplied."""
    return {k: v for k, v in fields.items() if v is not None}


# ============== Goals ==============


def add_goal(store: EntityStore, goal: str, due_date: date | None = None, metadata: dict | None = None) -> str:
    store.add_goal(goal, due_date, metadata)
    due = f", due {due_date.isoformat()}." if due_date else "."
    return f'Great! I\'ve added "{goal}" to your goals list{due}'


def update_goal(
    store: EntityStore,
    goal_id: int,
    text: str | None = None,
    due_date: date | None = None,
    metadata: dict | None = None,
    completed: bool | None = None,
) -> str:
    changes = _changes(text=text, due_date=due_date, metadata=metadata, completed=completed)
    if not changes:
        return NO_UPDATES
    if not store.update_goal(goal_id, changes):
        return f"No goal found with id {goal_id}."
    return f"Goal {goal_id} updated successfully."


def delete_goal(store: EntityStore, goal_id: int) -> str:
    if not store.delete_goal(goal_id):
        return f"No goal found with id {goal_id}."
    return f"Goal {goal_id} deleted successfully."


def list_goals(store: EntityStore) -> str:
    goals = store.list_goals()
    if not goals:
        return "You have no goals yet."
    lines = [f"#{g.id}: {g.text} [{'✓' if g.completed else '✗'}]" for g in goals]
    return "Here are your goals:\n- " + "\n- ".join(lines)


# ============== Todos ==============


def add_todo(
    store: EntityStore, todo: str, due_date: date | None = None, tags: list[str] | None = None
) -> str:
    store.add_todo(todo, due_date, tags)
    message = f'Great! I\'ve added "{todo}" to your todo list'
    if due_date:
        message += f", due {due_date.isoformat()}"
    if tags:
        message += f" (tags: {', '.join(tags)})"
    return message + "."


def update_todo(
    store: EntityStore,
    todo_id: int,
    text: str | None = None,
    due_date: date | None = None,
    tags: list[str] | None = None,
    completed: bool | None = None,
) -> str:
    changes = _changes(text=text, due_date=due_date, tags=tags, completed=completed)
    if not changes:
        return NO_UPDATES
    if not store.update_todo(todo_id, changes):
        return f"No todo found with id {todo_id}."
    return f"Todo {todo_id} updated successfully."


def delete_todo(store: EntityStore, todo_id: int) -> str:
    if not store.delete_todo(todo_id):
        return f"No todo found with id {todo_id}."
    return f"Todo {todo_id} deleted successfully."


def list_todos(store: EntityStore) -> str:
    todos = store.list_todos()
    if not todos:
        return "You have no todos yet."

    lines = []
    for t in todos:
        line = f"#{t.id}: {t.text} [{'✓' if t.completed else '✗'}]"
        if t.due_date:
            line += f" (due: {t.due_date.isoformat()})"
        if t.tags:
            line += f" (tags: {', '.join(t.tags)})"
        lines.append(line)
    return "Here are your todos:\n- " + "\n- ".join(lines)


# ============== Notes ==============


def add_note(store: EntityStore, note: str, tags: list[str] | None = None) -> str:
    store.add_note(note, tags)
    suffix = f" (tags: {', '.join(tags)})" if tags else ""
    return f'Got it! I\'ve made a note: "{note}"{suffix}.'


def update_note(
    store: EntityStore, note_id: int, text: str | None = None, tags: list[str] | None = None
) -> str:
    changes = _changes(text=text, tags=tags)
    if not changes:
        return NO_UPDATES
    if not store.update_note(note_id, changes):
        return f"No note found with id {note_id}."
    return f"Note {note_id} updated successfully."


def delete_note(store: EntityStore, note_id: int) -> str:
    if not store.delete_note(note_id):
        return f"No note found with id {note_id}."
    return f"Note {note_id} deleted successfully."


def list_notes(store: EntityStore, tag: str | None = None) -> str:
    notes = store.list_notes(tag)
    if not notes:
        return f'No notes found with tag "{tag}".' if tag else "You have no notes yet."

    lines = [f"#{n.id}: {n.text}" + (f" ({', '.join(n.tags)})" if n.tags else "") for n in notes]
    header = f'Here are your notes with tag "{tag}":' if tag else "Here are your notes:"
    return header + "\n- " + "\n- ".join(lines)


def remember_convo(
    store: EntityStore,
    conversation_summary: str,
    additional_tags: list[str] | None = None,
    today: date | None = None,
) -> str:
    """Save a conversation summary as a note tagged for today's recap."""
    today = today or date.today()
    tags = [TAG_CONVERSATION, date_tag(today), *(additional_tags or [])]
    store.add_note(f"Conversation from {today.isoformat()}:\n\n{conversation_summary}", tags)
    return (
        "✓ Conversation saved! I've created a note with the conversation summary and tagged "
        f'it with today\'s date ({today.isoformat()}) and "conversation". You can reference '
        'this later using the recap tools or by listing notes with the "conversation" tag.'
    )


def user_summary(store: EntityStore) -> str:
    """Everything known about the user: goals and notes, newest first."""
    goals = sorted(store.list_goals(), key=lambda g: (g.created_at is not None, g.created_at, g.id), reverse=True)
    notes = store.list_notes()

    parts = []
    if goals:
        lines = []
        for g in goals:
            due = f" (due {g.due_date.isoformat()})" if g.due_date else ""
            lines.append(f"#{g.id}: {g.text}{due} [{'✓' if g.completed else '✗'}]")
        parts.append(f"Goals (total {len(goals)}):\n- " + "\n- ".join(lines))
    else:
        parts.append("No goals set.")

    if notes:
        lines = [f"#{n.id}: {n.text}" + (f" ({', '.join(n.tags)})" if n.tags else "") for n in notes]
        parts.append(f"Notes (total {len(notes)}):\n- " + "\n- ".join(lines))
    else:
        parts.append("No notes recorded.")

    return "\n\n".join(parts)


# ============== Workouts ==============


def _exercise_line(index: int, ex: Exercise, separator: str = "x") -> str:
    line = f"{index}. {ex.name}"
    if ex.sets and ex.reps:
        line += f" - {ex.sets} sets of {ex.reps}" if separator == "sets" else f" - {ex.sets}x{ex.reps}"
    if ex.weight_lbs:
        line += f" @ {format_number(ex.weight_lbs)} lbs"
    return line


def add_workout(store: EntityStore, workout: Workout, exercises: list[Exercise] | None = None) -> str:
    """Log a workout; exercises are kept only for functional sessions."""
    exercises = exercises or []
    workout_id = store.add_workout(workout, exercises)

    message = f"Great workout! I've logged your {workout.type.value} session from {workout.date_label}"
    if workout.duration_mins:
        message += f" ({workout.duration_mins} minutes)"
    if workout.distance_miles:
        message += f" covering {format_number(workout.distance_miles)} miles"
    if workout.avg_heart_rate:
        message += f" with avg HR {workout.avg_heart_rate} BPM"
    if workout.rpe:
        message += f" at RPE {workout.rpe}/10"

    if workout.type == WorkoutType.FUNCTIONAL and exercises:
        message += "\n\nExercises completed:"
        for i, ex in enumerate(exercises, start=1):
            message += "\n" + _exercise_line(i, ex, separator="sets")

    return message + f"\n\nWorkout ID: #{workout_id}"


def update_workout(
    store: EntityStore,
    workout_id: int,
    changes: dict[str, Any],
    exercises: list[Exercise] | None = None,
) -> str:
    changes = _changes(**changes)
    if not changes and exercises is None:
        return NO_UPDATES
    if not store.update_workout(workout_id, changes, exercises):
        return f"Workout #{workout_id} not found."

    updated = store.get_workout(workout_id)
    message = f"Updated workout #{workout_id} ({updated.type.value.upper()}) from {updated.date_label}"

    metrics = updated.metrics(long_units=False)
    if metrics:
        message += f"\nMetrics: {', '.join(metrics)}"
    if updated.notes:
        message += f"\nNotes: {updated.notes}"

    if updated.type == WorkoutType.FUNCTIONAL and exercises is not None:
        message += f"\nUpdated exercises ({len(exercises)} total)"
        for i, ex in enumerate(exercises, start=1):
            message += "\n  " + _exercise_line(i, ex)

    return message


def delete_workout(store: EntityStore, workout_id: int) -> str:
    workout = store.get_workout(workout_id)
    if workout is None or not store.delete_workout(workout_id):
        return f"Workout #{workout_id} not found."
    return (
        f"Deleted workout #{workout_id} ({workout.type.value.upper()}) from "
        f"{workout.date_label}. All associated exercises have also been removed."
    )


def list_workouts(
    store: EntityStore,
    type: WorkoutType | None = None,
    days: int | None = None,
    limit: int | None = None,
    today: date | None = None,
) -> str:
    today = today or date.today()
    since = today - timedelta(days=days) if days else None
    workouts = store.list_workouts(type=type, since=since, limit=limit)

    if not workouts:
        type_desc = f" {type.value}" if type else ""
        days_desc = f" from the last {days} days" if days else ""
        return f"No{type_desc} workouts found{days_desc}."

    exercises = store.exercises_for(w.id for w in workouts if w.type == WorkoutType.FUNCTIONAL)

    entries = []
    for w in workouts:
        text = f"#{w.id}: {w.type.value.upper()} - {w.date_label}"
        metrics = w.metrics(long_units=False)
        if metrics:
            text += f" ({', '.join(metrics)})"
        if w.notes:
            text += f"\n   Notes: {w.notes}"
        if w.id in exercises:
            text += "\n   Exercises:"
            for i, ex in enumerate(exercises[w.id], start=1):
                text += f"\n     {i}. {ex.name}"
                details = ex.details(with_rest=True)
                if details:
                    text += f" - {details}"
                if ex.notes:
                    text += f" ({ex.notes})"
        entries.append(text)

    header = " ".join(
        part for part in (type.value if type else "", "workouts", f"(last {days} days)" if days else "") if part
    )
    return f"Your {header}:\n\n" + "\n\n".join(entries)
