"""Coach CLI - personal assistant and training log."""

import logging
import re
import sys
from contextlib import contextmanager

import click

from . import records
from .adapters.sqlite_store import StoreError
from .config import load_config
from .core.models import Exercise, Workout, WorkoutType
from .workflows import open_store, recap_day, resolve_date, start_day, workout_stats

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

WORKOUT_TYPES = click.Choice([t.value for t in WorkoutType])

# "Goblet Squat:3x10@35" -> name, sets, reps, weight
EXERCISE_PATTERN = re.compile(
    r"^(?P<name>[^:@]+?)\s*(?::\s*(?P<sets>\d+)\s*x\s*(?P<reps>[^@\s]+))?\s*(?:@\s*(?P<weight>\d+(?:\.\d+)?))?$"
)


@contextmanager
def _session():
    """Yield (config, store); report store and input errors on stderr and exit 1."""
    config = load_config()
    store = open_store(config)
    try:
        yield config, store
    except (StoreError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    finally:
        store.close()


def _optional_date(value: str | None):
    return resolve_date(value) if value else None


def parse_exercise(spec: str) -> Exercise:
    """Parse NAME[:SETSxREPS][@WEIGHT] into an Exercise."""
    match = EXERCISE_PATTERN.match(spec.strip())
    if not match:
        raise click.BadParameter(f"{spec!r} is not NAME[:SETSxREPS][@WEIGHT]", param_hint="--exercise")
    return Exercise(
        name=match["name"].strip(),
        sets=int(match["sets"]) if match["sets"] else None,
        reps=match["reps"],
        weight_lbs=float(match["weight"]) if match["weight"] else None,
    )


@click.group()
@click.version_option()
def main():
    """Coach - Personal Assistant CLI."""
    pass


@main.command()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def serve(debug: bool):
    """Run the MCP server over stdio."""
    from .server import create_server

    # stdout carries the protocol stream
    logging.basicConfig(format=LOG_FORMAT, level=logging.DEBUG if debug else logging.INFO, stream=sys.stderr)

    config = load_config()
    store = open_store(config)
    try:
        create_server(store, config).run()
    except StoreError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    finally:
        store.close()


# ============== Core engines ==============


@main.command("start-day")
@click.option("--lookback-days", "-l", type=click.IntRange(1, 7), default=None,
              help="Days of context to include (1-7)")
def start_day_cmd(lookback_days: int | None):
    """Generate and save the morning briefing."""
    with _session() as (config, store):
        click.echo(start_day(store, lookback_days or config.briefing_lookback_days))


@main.command("recap-day")
@click.option("--date", "-d", "target_date", default=None,
              help="Date to recap (YYYY-MM-DD), defaults to today")
def recap_day_cmd(target_date: str | None):
    """Compile and save the recap for a day."""
    with _session() as (_, store):
        click.echo(recap_day(store, resolve_date(target_date)))


@main.command("workout-stats")
@click.option("--days", type=click.IntRange(min=1), default=None, help="Only include the last N days")
@click.option("--type", "workout_type", type=WORKOUT_TYPES, default=None, help="Only one workout type")
def workout_stats_cmd(days: int | None, workout_type: str | None):
    """Show workout statistics and trends."""
    with _session() as (_, store):
        click.echo(workout_stats(store, days=days, type=workout_type))


@main.command()
def summary():
    """Show all goals and notes."""
    with _session() as (_, store):
        click.echo(records.user_summary(store))


@main.command()
@click.argument("summary_text")
@click.option("--tag", "-t", "tags", multiple=True, help="Extra tag (repeatable)")
def remember(summary_text: str, tags: tuple[str, ...]):
    """Save a conversation summary for today's recap."""
    with _session() as (_, store):
        click.echo(records.remember_convo(store, summary_text, list(tags)))


# ============== Goals ==============


@main.group()
def goal():
    """Manage goals."""


@goal.command("add")
@click.argument("text")
@click.option("--due", default=None, help="Due date (YYYY-MM-DD)")
def goal_add(text: str, due: str | None):
    with _session() as (_, store):
        click.echo(records.add_goal(store, text, _optional_date(due)))


@goal.command("list")
def goal_list():
    with _session() as (_, store):
        click.echo(records.list_goals(store))


@goal.command("update")
@click.argument("goal_id", type=int)
@click.option("--text", default=None)
@click.option("--due", default=None, help="Due date (YYYY-MM-DD)")
def goal_update(goal_id: int, text: str | None, due: str | None):
    with _session() as (_, store):
        click.echo(records.update_goal(store, goal_id, text=text, due_date=_optional_date(due)))


@goal.command("done")
@click.argument("goal_id", type=int)
def goal_done(goal_id: int):
    """Mark a goal completed."""
    with _session() as (_, store):
        click.echo(records.update_goal(store, goal_id, completed=True))


@goal.command("delete")
@click.argument("goal_id", type=int)
def goal_delete(goal_id: int):
    with _session() as (_, store):
        click.echo(records.delete_goal(store, goal_id))


# ============== Todos ==============


@main.group()
def todo():
    """Manage todos."""


@todo.command("add")
@click.argument("text")
@click.option("--due", default=None, help="Due date (YYYY-MM-DD)")
@click.option("--tag", "-t", "tags", multiple=True, help="Tag (repeatable)")
def todo_add(text: str, due: str | None, tags: tuple[str, ...]):
    with _session() as (_, store):
        click.echo(records.add_todo(store, text, _optional_date(due), list(tags) or None))


@todo.command("list")
def todo_list():
    with _session() as (_, store):
        click.echo(records.list_todos(store))


@todo.command("done")
@click.argument("todo_id", type=int)
def todo_done(todo_id: int):
    """Mark a todo completed."""
    with _session() as (_, store):
        click.echo(records.update_todo(store, todo_id, completed=True))


@todo.command("delete")
@click.argument("todo_id", type=int)
def todo_delete(todo_id: int):
    with _session() as (_, store):
        click.echo(records.delete_todo(store, todo_id))


# ============== Notes ==============


@main.group()
def note():
    """Manage notes."""


@note.command("add")
@click.argument("text")
@click.option("--tag", "-t", "tags", multiple=True, help="Tag (repeatable)")
def note_add(text: str, tags: tuple[str, ...]):
    with _session() as (_, store):
        click.echo(records.add_note(store, text, list(tags) or None))


@note.command("list")
@click.option("--tag", "-t", default=None, help="Only notes with this tag")
def note_list(tag: str | None):
    with _session() as (_, store):
        click.echo(records.list_notes(store, tag))


@note.command("delete")
@click.argument("note_id", type=int)
def note_delete(note_id: int):
    with _session() as (_, store):
        click.echo(records.delete_note(store, note_id))


# ============== Workouts ==============


@main.group()
def workout():
    """Log and review workouts."""


@workout.command("add")
@click.argument("workout_type", type=WORKOUT_TYPES)
@click.option("--date", "-d", "workout_date", default=None, help="Workout date (YYYY-MM-DD), defaults to today")
@click.option("--duration", type=click.IntRange(min=1), default=None, help="Minutes")
@click.option("--distance", type=click.FloatRange(min=0, min_open=True), default=None, help="Miles")
@click.option("--hr", type=click.IntRange(1, 220), default=None, help="Average heart rate")
@click.option("--rpe", type=click.IntRange(1, 10), default=None, help="Perceived exertion (1-10)")
@click.option("--notes", default=None)
@click.option("--exercise", "-e", "exercises", multiple=True,
              help="Exercise as NAME[:SETSxREPS][@WEIGHT] (repeatable, functional only)")
def workout_add(
    workout_type: str,
    workout_date: str | None,
    duration: int | None,
    distance: float | None,
    hr: int | None,
    rpe: int | None,
    notes: str | None,
    exercises: tuple[str, ...],
):
    """Log a workout."""
    parsed = [parse_exercise(e) for e in exercises]
    with _session() as (_, store):
        entry = Workout(
            id=0,
            type=WorkoutType(workout_type),
            date=resolve_date(workout_date),
            duration_mins=duration,
            distance_miles=distance,
            avg_heart_rate=hr,
            rpe=rpe,
            notes=notes,
        )
        click.echo(records.add_workout(store, entry, parsed))


@workout.command("list")
@click.option("--type", "workout_type", type=WORKOUT_TYPES, default=None)
@click.option("--days", type=click.IntRange(min=1), default=None)
@click.option("--limit", type=click.IntRange(1, 50), default=None)
def workout_list(workout_type: str | None, days: int | None, limit: int | None):
    with _session() as (_, store):
        type_filter = WorkoutType(workout_type) if workout_type else None
        click.echo(records.list_workouts(store, type=type_filter, days=days, limit=limit))


@workout.command("delete")
@click.argument("workout_id", type=int)
def workout_delete(workout_id: int):
    with _session() as (_, store):
        click.echo(records.delete_workout(store, workout_id))


# ============== Telegram ==============


@main.command()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def bot(debug: bool):
    """Run the Telegram bot."""
    if debug:
        logging.basicConfig(format=LOG_FORMAT, level=logging.DEBUG)

    try:
        from .telegram_bot import run_bot
        click.echo("Starting Coach Telegram bot...")
        click.echo("Press Ctrl+C to stop")
        run_bot()
    except ValueError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nBot stopped.")


if __name__ == "__main__":
    main()
