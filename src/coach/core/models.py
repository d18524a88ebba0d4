"""Domain records - pure data, no I/O dependencies."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

# Reserved note tags. Consumers query notes by these exact strings.
TAG_RECAP = "recap"
TAG_DAILY_SUMMARY = "daily-summary"
TAG_BRIEFING = "daily-briefing"
TAG_START_DAY = "start-day"
TAG_CONVERSATION = "conversation"

UNKNOWN_DATE = "unknown date"


def date_tag(day: date) -> str:
    """Tag marking the calendar day a synthesized note refers to."""
    return f"date-{day.isoformat()}"


def parse_date(value: str | date | None) -> date | None:
    """Parse an ISO date, tolerating timestamps and junk (returns None)."""
    if value is None or isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


class WorkoutType(str, Enum):
    RUNNING = "running"
    CYCLING = "cycling"
    FUNCTIONAL = "functional"


class NoteKind(Enum):
    """What a note represents, derived from its tags."""

    USER = "user"
    BRIEFING = "briefing"
    RECAP = "recap"
    CONVERSATION = "conversation"


@dataclass
class Goal:
    id: int
    text: str
    due_date: date | None = None
    metadata: dict | None = None
    completed: bool = False
    created_at: datetime | None = None

    def days_until_due(self, as_of: date) -> int | None:
        """Days until due date (negative if overdue)."""
        if not self.due_date:
            return None
        return (self.due_date - as_of).days


@dataclass
class Todo:
    id: int
    text: str
    due_date: date | None = None
    tags: list[str] = field(default_factory=list)
    completed: bool = False
    created_at: datetime | None = None

    def days_until_due(self, as_of: date) -> int | None:
        if not self.due_date:
            return None
        return (self.due_date - as_of).days


@dataclass
class Note:
    id: int
    text: str
    tags: list[str] = field(default_factory=list)
    created_at: datetime | None = None

    @property
    def kind(self) -> NoteKind:
        if TAG_RECAP in self.tags:
            return NoteKind.RECAP
        if TAG_BRIEFING in self.tags:
            return NoteKind.BRIEFING
        if TAG_CONVERSATION in self.tags:
            return NoteKind.CONVERSATION
        return NoteKind.USER

    def is_conversation_on(self, day: date) -> bool:
        """Conversation notes must carry both the marker and the day's tag."""
        return TAG_CONVERSATION in self.tags and date_tag(day) in self.tags


@dataclass
class Exercise:
    name: str
    sets: int | None = None
    reps: str | None = None
    weight_lbs: float | None = None
    rest_sec: int | None = None
    notes: str | None = None
    id: int | None = None
    workout_id: int | None = None

    def details(self, with_rest: bool = False) -> str:
        """Compact 'SETSxREPS, W lbs' description."""
        parts = []
        if self.sets and self.reps:
            parts.append(f"{self.sets}x{self.reps}")
        if self.weight_lbs:
            parts.append(f"{format_number(self.weight_lbs)} lbs")
        if with_rest and self.rest_sec:
            parts.append(f"{self.rest_sec}s rest")
        return ", ".join(parts)


@dataclass
class Workout:
    id: int
    type: WorkoutType
    date: date | None
    duration_mins: int | None = None
    distance_miles: float | None = None
    avg_heart_rate: int | None = None
    rpe: int | None = None
    notes: str | None = None
    created_at: datetime | None = None

    @property
    def date_label(self) -> str:
        return self.date.isoformat() if self.date else UNKNOWN_DATE

    def metrics(self, long_units: bool = True) -> list[str]:
        """Human-readable metric fragments, skipping empty values."""
        parts = []
        if self.duration_mins:
            parts.append(f"{self.duration_mins} {'minutes' if long_units else 'min'}")
        if self.distance_miles:
            parts.append(f"{format_number(self.distance_miles)} miles")
        if self.avg_heart_rate:
            parts.append(f"{self.avg_heart_rate} BPM{' avg' if long_units else ''}")
        if self.rpe:
            parts.append(f"RPE {self.rpe}/10")
        return parts


def format_number(value: float) -> str:
    """Render 3.0 as '3' and 3.10 as '3.1'."""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"


def format_tags(tags: list[str]) -> str:
    """' [a, b]' suffix, or empty string when there are no tags."""
    return f" [{', '.join(tags)}]" if tags else ""
