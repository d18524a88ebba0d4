"""Pure briefing assembly logic - no I/O dependencies."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import TypeVar

from .models import Goal, Note, Todo, Workout, format_tags

SOON_DAYS = 3
STREAK_WINDOW_DAYS = 7
HIGHLIGHT_SCAN_LINES = 10
MAX_HIGHLIGHTS = 5
NOTE_PREVIEW_CHARS = 100
NOTES_SHOWN = 5

Dated = TypeVar("Dated", Goal, Todo)


@dataclass
class DueBuckets:
    """Pending items split by how pressing their due date is."""

    overdue: list[Goal | Todo] = field(default_factory=list)
    due_today: list[Goal | Todo] = field(default_factory=list)
    due_soon: list[Goal | Todo] = field(default_factory=list)


def classify_due(items: Iterable[Dated], today: date, soon_days: int = SOON_DAYS) -> DueBuckets:
    """
    Partition items into overdue, due today and due within `soon_days`.

    Items without a due date, or due later than the window, land nowhere.
    """
    buckets = DueBuckets()
    soon_limit = today + timedelta(days=soon_days)
    for item in items:
        if item.due_date is None:
            continue
        if item.due_date < today:
            buckets.overdue.append(item)
        elif item.due_date == today:
            buckets.due_today.append(item)
        elif item.due_date <= soon_limit:
            buckets.due_soon.append(item)
    return buckets


def briefing_streak(workout_dates: Iterable[date], today: date) -> int:
    """
    Consecutive workout days counted backward from today, over at most a week.

    A missing workout today does not end the streak (the day isn't over);
    a gap on any earlier day does.
    """
    dates = set(workout_dates)
    streak = 0
    for offset in range(STREAK_WINDOW_DAYS):
        if today - timedelta(days=offset) in dates:
            streak += 1
        elif offset > 0:
            break
    return streak


def extract_recap_highlights(text: str) -> list[str]:
    """
    Pull key lines out of a recap note.

    Bullet lines from the first few lines win; otherwise fall back to the
    first substantial lines.
    """
    lines = text.split("\n")[:HIGHLIGHT_SCAN_LINES]
    bullets = [line for line in lines if "- " in line or "•" in line]
    if bullets:
        return bullets[:MAX_HIGHLIGHTS]
    return [line for line in lines if len(line.strip()) > 20][:3]


def days_since(last: date | None, today: date) -> int | None:
    if last is None:
        return None
    return max((today - last).days, 0)


@dataclass
class BriefingData:
    """Assembled briefing data ready for formatting."""

    date: date
    lookback_days: int
    latest_recap: Note | None
    highlights: list[str]
    todos: DueBuckets
    goals: DueBuckets
    recent_notes: list[Note]
    recent_workouts: list[Workout]
    workout_streak: int
    total_pending: int

    @property
    def urgent_count(self) -> int:
        return (
            len(self.todos.overdue)
            + len(self.goals.overdue)
            + len(self.todos.due_today)
            + len(self.goals.due_today)
        )

    @property
    def days_since_workout(self) -> int | None:
        dated = [w.date for w in self.recent_workouts if w.date]
        return days_since(max(dated), self.date) if dated else None


def assemble_briefing(
    today: date,
    lookback_days: int,
    latest_recap: Note | None,
    pending_todos: Sequence[Todo],
    pending_goals: Sequence[Goal],
    recent_notes: Sequence[Note],
    recent_workouts: Sequence[Workout],
    streak_dates: Iterable[date],
) -> BriefingData:
    """
    Assemble briefing data from raw store reads.

    Pure function - no I/O.
    """
    return BriefingData(
        date=today,
        lookback_days=lookback_days,
        latest_recap=latest_recap,
        highlights=extract_recap_highlights(latest_recap.text) if latest_recap else [],
        todos=classify_due(pending_todos, today),
        goals=classify_due(pending_goals, today),
        recent_notes=list(recent_notes),
        recent_workouts=list(recent_workouts),
        workout_streak=briefing_streak(streak_dates, today),
        total_pending=len(pending_todos) + len(pending_goals),
    )


def _overdue_line(item: Goal | Todo, today: date) -> str:
    days_past = -item.days_until_due(today)
    return f"- #{item.id}: {item.text} ({days_past} days overdue)"


def _note_preview(note: Note) -> str:
    text = note.text
    if len(text) > NOTE_PREVIEW_CHARS:
        text = text[:NOTE_PREVIEW_CHARS] + "..."
    return f"- #{note.id}: {text}{format_tags(note.tags)}"


def _workout_line(workout: Workout) -> str:
    line = f"- #{workout.id}: {workout.date_label} {workout.type.value.upper()}"
    metrics = workout.metrics(long_units=False)
    if metrics:
        line += f" ({', '.join(metrics)})"
    return line


def _workout_commentary(data: BriefingData) -> str:
    days = data.days_since_workout
    if days is None:
        return (
            f"No workouts logged in the last {data.lookback_days} days. "
            "Even a short session today would get things moving."
        )
    if days == 0:
        return "You've already trained today. Nice work!"
    if days == 1:
        return "Your last workout was yesterday. Keep the momentum going."
    if days >= 3:
        return f"It's been {days} days since your last workout. Time to get moving again?"
    return f"It's been {days} days since your last workout."


def format_briefing(data: BriefingData) -> str:
    """
    Render briefing data as a markdown report.

    Pure function - no I/O.
    """
    today = data.date
    sections = [
        f"# Daily Briefing for {today.isoformat()}",
        "Good morning! Here's your context for starting the day:",
    ]

    if data.latest_recap:
        created = data.latest_recap.created_at
        recap_date = created.date().isoformat() if created else "an earlier day"
        sections.append("\n## Recent Context")
        sections.append(f"Your most recent recap was from {recap_date}. Here are the key highlights:")
        sections.append("\n".join(data.highlights))

    if data.todos.overdue or data.goals.overdue:
        sections.append("\n## OVERDUE ITEMS - Immediate Attention Needed")
        if data.todos.overdue:
            sections.append(f"\n### Overdue Todos ({len(data.todos.overdue)})")
            sections.extend(_overdue_line(t, today) for t in data.todos.overdue)
        if data.goals.overdue:
            sections.append(f"\n### Overdue Goals ({len(data.goals.overdue)})")
            sections.extend(_overdue_line(g, today) for g in data.goals.overdue)

    if data.todos.due_today or data.goals.due_today:
        sections.append("\n## TODAY'S PRIORITIES")
        if data.todos.due_today:
            sections.append(f"\n### Todos Due Today ({len(data.todos.due_today)})")
            sections.extend(f"- #{t.id}: {t.text}{format_tags(t.tags)}" for t in data.todos.due_today)
        if data.goals.due_today:
            sections.append(f"\n### Goals Due Today ({len(data.goals.due_today)})")
            sections.extend(f"- #{g.id}: {g.text}" for g in data.goals.due_today)

    if data.todos.due_soon or data.goals.due_soon:
        sections.append(f"\n## COMING UP (Next {SOON_DAYS} Days)")
        if data.todos.due_soon:
            sections.append(f"\n### Upcoming Todos ({len(data.todos.due_soon)})")
            sections.extend(
                f"- #{t.id}: {t.text} (due {t.due_date.isoformat()}){format_tags(t.tags)}"
                for t in data.todos.due_soon
            )
        if data.goals.due_soon:
            sections.append(f"\n### Upcoming Goals ({len(data.goals.due_soon)})")
            sections.extend(
                f"- #{g.id}: {g.text} (due {g.due_date.isoformat()})" for g in data.goals.due_soon
            )

    if data.recent_notes:
        sections.append(f"\n## Recent Notes & Insights (Last {data.lookback_days} Days)")
        sections.extend(_note_preview(n) for n in data.recent_notes[:NOTES_SHOWN])

    sections.append("\n## Recent Activity")
    sections.extend(_workout_line(w) for w in data.recent_workouts)
    if data.recent_workouts:
        sections.append(f"- Current workout streak: {data.workout_streak} days")
    sections.append(_workout_commentary(data))

    sections.append("\n## Quick Stats")
    sections.append(f"- Total pending items: {data.total_pending}")
    sections.append(f"- Items needing attention today: {data.urgent_count}")
    sections.append(f"- Recent notes for context: {len(data.recent_notes)}")
    sections.append(f"- Workout streak: {data.workout_streak} days")

    if data.urgent_count > 0:
        sections.append("\n## Focus for Today")
        sections.append(
            f"You have {data.urgent_count} priority items today. Start with the overdue "
            "items, then tackle today's priorities. You've got this!"
        )
    elif data.total_pending > 0:
        sections.append("\n## Opportunity Ahead")
        sections.append(
            "Great news - no urgent items today! This is a perfect opportunity to make "
            f"progress on your {data.total_pending} pending items or plan ahead."
        )
    else:
        sections.append("\n## Clear Horizon")
        sections.append(
            "Excellent! You have a clean slate today. Consider setting new goals or "
            "reviewing your long-term objectives."
        )

    return "\n".join(sections)
