"""Pure daily recap logic - no I/O dependencies."""

from dataclasses import dataclass, field
from datetime import date, datetime

from .models import (
    Exercise,
    Goal,
    Note,
    Todo,
    Workout,
    WorkoutType,
    format_number,
    format_tags,
)


def productivity_score(completed: int, total: int) -> int:
    """Percentage of new items completed; 0 for an empty day."""
    if total <= 0:
        return 0
    return round(completed / total * 100)


def split_conversations(notes: list[Note], day: date) -> tuple[list[Note], list[Note]]:
    """
    Split notes into conversation notes for `day` and everything else.

    Returns: (conversations, regular_notes)
    """
    conversations = [n for n in notes if n.is_conversation_on(day)]
    regular = [n for n in notes if not n.is_conversation_on(day)]
    return conversations, regular


@dataclass
class RecapData:
    """Everything recorded on one day, ready for formatting."""

    date: date
    generated_at: datetime
    goals: list[Goal]
    todos: list[Todo]
    notes: list[Note]
    workouts: list[Workout]
    exercises: dict[int, list[Exercise]] = field(default_factory=dict)
    # TODO: fill these once goals and todos record a completed_at timestamp;
    # today only completion of items created on the recap date is visible.
    completed_goals: list[Goal] = field(default_factory=list)
    completed_todos: list[Todo] = field(default_factory=list)

    @property
    def conversations(self) -> list[Note]:
        return split_conversations(self.notes, self.date)[0]

    @property
    def regular_notes(self) -> list[Note]:
        return split_conversations(self.notes, self.date)[1]

    @property
    def total_items(self) -> int:
        return len(self.goals) + len(self.todos) + len(self.notes) + len(self.workouts)

    @property
    def completed_items(self) -> int:
        return (
            sum(1 for g in self.goals if g.completed)
            + sum(1 for t in self.todos if t.completed)
            + len(self.completed_goals)
            + len(self.completed_todos)
        )

    @property
    def productivity(self) -> int:
        return productivity_score(self.completed_items, self.total_items)

    @property
    def workout_minutes(self) -> int:
        return sum(w.duration_mins or 0 for w in self.workouts)

    @property
    def workout_miles(self) -> float:
        return sum(w.distance_miles or 0 for w in self.workouts)


def _format_workout(workout: Workout, exercises: list[Exercise]) -> list[str]:
    line = f"- #{workout.id}: {workout.type.value.upper()}"
    metrics = workout.metrics()
    if metrics:
        line += f" ({', '.join(metrics)})"
    if workout.notes:
        line += f" - {workout.notes}"

    lines = [line]
    if workout.type == WorkoutType.FUNCTIONAL:
        for i, ex in enumerate(exercises, start=1):
            ex_line = f"    {i}. {ex.name}"
            details = ex.details()
            if details:
                ex_line += f" - {details}"
            lines.append(ex_line)
    return lines


def format_recap(data: RecapData) -> str:
    """
    Render a day's activity as a markdown recap.

    Sections with nothing in them are left out entirely.
    """
    sections = [
        f"# Daily Recap for {data.date.isoformat()}",
        f"Generated on: {data.generated_at.isoformat(timespec='seconds')}",
    ]

    if data.goals or data.completed_goals:
        sections.append("\n## Goals")
        if data.goals:
            sections.append(f"\n### New Goals Created Today ({len(data.goals)})")
            for g in data.goals:
                status = "✓ COMPLETED" if g.completed else "⏳ In Progress"
                due = f" (due {g.due_date.isoformat()})" if g.due_date else ""
                sections.append(f"- #{g.id}: {g.text}{due} [{status}]")
        if data.completed_goals:
            sections.append(f"\n### Goals Completed Today ({len(data.completed_goals)})")
            sections.extend(f"- #{g.id}: {g.text} ✓ COMPLETED" for g in data.completed_goals)

    if data.todos or data.completed_todos:
        sections.append("\n## Tasks & Todos")
        if data.todos:
            sections.append(f"\n### New Todos Created Today ({len(data.todos)})")
            for t in data.todos:
                status = "✓ COMPLETED" if t.completed else "⏳ Pending"
                due = f" (due {t.due_date.isoformat()})" if t.due_date else ""
                sections.append(f"- #{t.id}: {t.text}{due}{format_tags(t.tags)} [{status}]")
        if data.completed_todos:
            sections.append(f"\n### Todos Completed Today ({len(data.completed_todos)})")
            sections.extend(
                f"- #{t.id}: {t.text}{format_tags(t.tags)} ✓ COMPLETED" for t in data.completed_todos
            )

    regular = data.regular_notes
    if regular:
        sections.append(f"\n## Notes & Observations ({len(regular)})")
        sections.extend(f"- #{n.id}: {n.text}{format_tags(n.tags)}" for n in regular)

    if data.workouts:
        sections.append(f"\n## Fitness & Workouts ({len(data.workouts)})")
        for w in data.workouts:
            sections.extend(_format_workout(w, data.exercises.get(w.id, [])))

    conversations = data.conversations
    if conversations:
        sections.append(f"\n## Conversations & Discussions ({len(conversations)})")
        sections.extend(f"- #{c.id}: {c.text}" for c in conversations)

    if data.total_items > 0:
        sections.append("\n## Daily Summary")
        sections.append(f"- Total new items: {data.total_items}")
        sections.append(f"- Items completed: {data.completed_items}")
        if data.workouts:
            sections.append(f"- Workouts completed: {len(data.workouts)}")
            if data.workout_minutes > 0:
                sections.append(f"- Total workout time: {data.workout_minutes} minutes")
            if data.workout_miles > 0:
                sections.append(f"- Total distance: {format_number(round(data.workout_miles, 2))} miles")
        sections.append(f"- Productivity score: {data.productivity}%")

    return "\n".join(sections)


def format_recap_confirmation(data: RecapData) -> str:
    """Short reply for the caller; the full recap lives in the saved note."""
    day = data.date.isoformat()
    if data.total_items == 0:
        return (
            f"No activities found for {day}. It looks like it was a quiet day! "
            "I've still created a recap note for completeness."
        )

    lines = [
        f"✓ Daily recap for {day} complete!",
        "",
        "Summary:",
        f"- {data.total_items} total activities",
        f"- {data.completed_items} items completed",
    ]
    if data.workouts:
        lines.append(f"- {len(data.workouts)} workouts completed")
    lines.append(f"- {len(data.conversations)} conversations recorded")
    lines.append("")
    lines.append(
        f'I\'ve saved a detailed recap as a note tagged with "recap" and "date-{day}". '
        "You can review it anytime or use it with the start-day tool tomorrow."
    )
    return "\n".join(lines)
