"""Telegram command handlers."""

import logging

from telegram import Update
from telegram.ext import ContextTypes

from . import records
from .adapters.sqlite_store import StoreError
from .core.models import WorkoutType
from .telegram_format import send_markdown
from .workflows import recap_day, resolve_date, start_day, workout_stats

logger = logging.getLogger(__name__)

TELEGRAM_TAG = "telegram"

COMMANDS = (
    "/startday [days] - Morning briefing (1-7 days of context)\n"
    "/recap [YYYY-MM-DD] - Recap a day (default today)\n"
    "/stats [days] [type] - Workout statistics\n"
    "/todos - List your todos\n"
    "/help - Show all commands\n\n"
    "Any other message is saved as a note."
)


def _store(context: ContextTypes.DEFAULT_TYPE):
    return context.bot_data["store"]


def _config(context: ContextTypes.DEFAULT_TYPE):
    return context.bot_data["config"]


# ============== Simple Commands ==============


async def start_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /start command."""
    await update.message.reply_text("Hey! I'm Coach, your personal assistant.\n\nCommands:\n" + COMMANDS)


async def help_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /help command."""
    await update.message.reply_text("Coach Commands\n\n" + COMMANDS)


async def todos_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /todos command - list todos."""
    try:
        text = records.list_todos(_store(context))
    except StoreError as e:
        logger.error(f"Failed to list todos: {e}")
        await update.message.reply_text(f"Failed to read todos: {e}")
        return
    await update.message.reply_text(text)


# ============== Engines ==============


async def startday_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /startday [days] - generate and save the briefing."""
    lookback = _config(context).briefing_lookback_days
    if context.args:
        try:
            lookback = int(context.args[0])
        except ValueError:
            await update.message.reply_text("Usage: /startday [days], days between 1 and 7")
            return

    try:
        briefing = start_day(_store(context), lookback)
    except ValueError as e:
        await update.message.reply_text(f"Usage: /startday [days] ({e})")
        return
    except StoreError as e:
        logger.error(f"Briefing failed: {e}")
        await update.message.reply_text(f"Failed to generate briefing: {e}")
        return

    await send_markdown(update.message, briefing)


async def recap_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /recap [date] - compile and save the day's recap."""
    try:
        target = resolve_date(context.args[0] if context.args else None)
    except ValueError as e:
        await update.message.reply_text(str(e))
        return

    try:
        confirmation = recap_day(_store(context), target)
    except StoreError as e:
        logger.error(f"Recap failed: {e}")
        await update.message.reply_text(f"Failed to compile recap: {e}")
        return

    await update.message.reply_text(confirmation)


def parse_stats_args(args: list[str]) -> tuple[int | None, WorkoutType | None]:
    """Accept days and type in either order: `/stats 30 running`."""
    days = None
    workout_type = None
    for arg in args:
        if arg.isdigit():
            days = int(arg)
        else:
            workout_type = WorkoutType(arg.lower())
    return days, workout_type


async def stats_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /stats [days] [type]."""
    try:
        days, workout_type = parse_stats_args(context.args or [])
        report = workout_stats(_store(context), days=days, type=workout_type)
    except ValueError:
        types = "|".join(t.value for t in WorkoutType)
        await update.message.reply_text(f"Usage: /stats [days] [{types}]")
        return
    except StoreError as e:
        logger.error(f"Stats failed: {e}")
        await update.message.reply_text(f"Failed to compute stats: {e}")
        return

    await send_markdown(update.message, report)


# ============== Note Logging ==============


async def note_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle non-command messages by saving them as notes."""
    text = update.message.text.strip()
    if not text:
        return

    try:
        records.add_note(_store(context), text, [TELEGRAM_TAG])
    except StoreError as e:
        logger.error(f"Failed to save note: {e}")
        await update.message.reply_text(f"Failed to save note: {e}")
        return

    await update.message.reply_text("Saved as a note.")
