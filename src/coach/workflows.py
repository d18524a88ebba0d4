"""Shared workflow layer between the MCP server, CLI and Telegram.

Each engine reads from the store, computes everything in memory, persists its
synthesized note where it has one, and returns the text for the caller.
"""

import logging
from datetime import date, datetime, timedelta

from .adapters.sqlite_store import SqliteEntityStore
from .config import Config
from .core.briefing import STREAK_WINDOW_DAYS, assemble_briefing, format_briefing
from .core.models import (
    TAG_BRIEFING,
    TAG_DAILY_SUMMARY,
    TAG_RECAP,
    TAG_START_DAY,
    WorkoutType,
    date_tag,
)
from .core.recap import RecapData, format_recap, format_recap_confirmation
from .core.stats import (
    TREND_MIN_DAYS,
    aggregate_workouts,
    compare_halves,
    format_no_workouts,
    format_stats,
    stats_streak,
    type_distribution,
)
from .ports.entity_store import EntityStore

logger = logging.getLogger(__name__)

RECENT_NOTES_LIMIT = 10
RECENT_WORKOUTS_LIMIT = 5

BRIEFING_SAVED_FOOTER = (
    '\n\n---\nThis briefing has been saved as a note tagged with "daily-briefing" for your records.'
)


def open_store(config: Config) -> SqliteEntityStore:
    """Create the store for the configured database file (opened on first use)."""
    return SqliteEntityStore(config.database_file)


def resolve_date(value: str | date | None, default: date | None = None) -> date:
    """Parse an optional ISO date argument, defaulting to today."""
    if value is None or value == "":
        return default or date.today()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise ValueError(f"Invalid date {value!r}, expected YYYY-MM-DD") from None


def start_day(store: EntityStore, lookback_days: int = 3, today: date | None = None) -> str:
    """Build the morning briefing, save it as a note, return it."""
    if not 1 <= lookback_days <= 7:
        raise ValueError("lookback_days must be between 1 and 7")

    today = today or date.today()
    lookback_date = today - timedelta(days=lookback_days)

    latest_recap = store.latest_note_tagged(TAG_RECAP)
    pending_todos = store.list_todos(pending_only=True)
    pending_goals = store.list_goals(pending_only=True)
    recent_notes = store.notes_since(lookback_date, exclude_tag=TAG_RECAP, limit=RECENT_NOTES_LIMIT)
    recent_workouts = store.list_workouts(since=lookback_date, limit=RECENT_WORKOUTS_LIMIT)
    streak_workouts = store.list_workouts(since=today - timedelta(days=STREAK_WINDOW_DAYS))

    data = assemble_briefing(
        today=today,
        lookback_days=lookback_days,
        latest_recap=latest_recap,
        pending_todos=pending_todos,
        pending_goals=pending_goals,
        recent_notes=recent_notes,
        recent_workouts=recent_workouts,
        streak_dates=[w.date for w in streak_workouts if w.date],
    )
    logger.debug(
        f"Briefing for {today}: {data.total_pending} pending, {data.urgent_count} urgent, "
        f"{len(recent_notes)} notes, streak {data.workout_streak}"
    )

    briefing = format_briefing(data)
    note_id = store.add_note(briefing, [TAG_BRIEFING, date_tag(today), TAG_START_DAY])
    logger.info(f"Saved daily briefing for {today} as note #{note_id}")

    return briefing + BRIEFING_SAVED_FOOTER


def compile_recap(store: EntityStore, target: date, now: datetime | None = None) -> RecapData:
    """Gather everything recorded on `target`. Workouts go by their own date."""
    workouts = store.workouts_on(target)
    functional_ids = [w.id for w in workouts if w.type == WorkoutType.FUNCTIONAL]

    return RecapData(
        date=target,
        generated_at=now or datetime.now(),
        goals=store.goals_created_on(target),
        todos=store.todos_created_on(target),
        notes=store.notes_created_on(target),
        workouts=workouts,
        exercises=store.exercises_for(functional_ids),
    )


def recap_day(store: EntityStore, target: date | None = None, now: datetime | None = None) -> str:
    """Build the day's recap, always save it as a note, return a short summary."""
    target = target or date.today()
    data = compile_recap(store, target, now)

    recap = format_recap(data)
    note_id = store.add_note(recap, [TAG_RECAP, date_tag(target), TAG_DAILY_SUMMARY])
    logger.info(f"Saved recap for {target} as note #{note_id} ({data.total_items} items)")

    return format_recap_confirmation(data)


def workout_stats(
    store: EntityStore,
    days: int | None = None,
    type: WorkoutType | str | None = None,
    today: date | None = None,
) -> str:
    """Workout statistics over an optional window and type. Never writes."""
    if days is not None and days <= 0:
        raise ValueError("days must be a positive integer")

    today = today or date.today()
    type = WorkoutType(type) if type else None
    since = today - timedelta(days=days) if days else None

    workouts = store.list_workouts(type=type, since=since)
    if not workouts:
        return format_no_workouts(days, type)

    aggregate = aggregate_workouts(workouts)
    streak = stats_streak(w.date for w in workouts if w.date)
    trend = compare_halves(workouts, today, days) if days and days >= TREND_MIN_DAYS else None

    return format_stats(
        aggregate,
        type_distribution(workouts),
        streak,
        trend,
        days=days,
        type=type,
    )
