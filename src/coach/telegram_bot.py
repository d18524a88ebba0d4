"""Coach Telegram Bot."""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from telegram import Bot, Update
from telegram.ext import Application, CommandHandler, MessageHandler, filters

from .adapters.sqlite_store import StoreError
from .config import Config, load_config
from .ports.entity_store import EntityStore
from .telegram_format import send_markdown
from .telegram_handlers import (
    help_handler,
    note_handler,
    recap_handler,
    start_handler,
    startday_handler,
    stats_handler,
    todos_handler,
)
from .workflows import open_store, recap_day, start_day

logger = logging.getLogger(__name__)


class AuthFilter(filters.BaseFilter):
    """Filter to only allow authorized users."""

    def __init__(self, allowed_users: list[int]):
        super().__init__()
        self.allowed_users = allowed_users

    def check_update(self, update: Update) -> bool:
        if not self.allowed_users:
            return True  # No restriction if no users configured
        user = update.effective_user
        if user is None:
            return False
        return user.id in self.allowed_users


def create_application(store: EntityStore, config: Config | None = None) -> Application:
    """Create and configure the Telegram bot application."""
    if config is None:
        config = load_config()

    if not config.telegram_bot_token:
        raise ValueError(
            "TELEGRAM_BOT_TOKEN not configured. "
            "Get a token from @BotFather on Telegram and add it to coach.conf"
        )

    app = Application.builder().token(config.telegram_bot_token).build()
    app.bot_data["store"] = store
    app.bot_data["config"] = config

    auth_filter = AuthFilter(config.telegram_allowed_users)

    app.add_handler(CommandHandler("start", start_handler, filters=auth_filter))
    app.add_handler(CommandHandler("help", help_handler, filters=auth_filter))
    app.add_handler(CommandHandler("startday", startday_handler, filters=auth_filter))
    app.add_handler(CommandHandler("recap", recap_handler, filters=auth_filter))
    app.add_handler(CommandHandler("stats", stats_handler, filters=auth_filter))
    app.add_handler(CommandHandler("todos", todos_handler, filters=auth_filter))
    app.add_handler(MessageHandler(auth_filter & filters.TEXT & ~filters.COMMAND, note_handler))

    async def unauthorized_handler(update: Update, context):
        user = update.effective_user
        logger.warning(f"Unauthorized access attempt from user {user.id} ({user.username})")
        await update.message.reply_text(
            "Unauthorized. This bot is private.\n"
            "If you're the owner, add your Telegram user ID to TELEGRAM_ALLOWED_USERS in coach.conf"
        )

    if config.telegram_allowed_users:
        app.add_handler(MessageHandler(~auth_filter & filters.ALL, unauthorized_handler))

    return app


def _parse_time(value: str) -> tuple[int, int]:
    hour, minute = map(int, value.split(":"))
    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise ValueError(value)
    return hour, minute


def setup_scheduler(app: Application, store: EntityStore, config: Config) -> AsyncIOScheduler:
    """Schedule the morning briefing and evening recap for allowlisted users."""
    scheduler = AsyncIOScheduler(timezone=config.timezone or "America/Toronto")

    if not config.telegram_allowed_users:
        logger.info("No TELEGRAM_ALLOWED_USERS configured, scheduled messages disabled")
        return scheduler

    if config.telegram_briefing_time:
        try:
            hour, minute = _parse_time(config.telegram_briefing_time)
            scheduler.add_job(
                send_scheduled_briefing,
                CronTrigger(hour=hour, minute=minute),
                args=[app.bot, config.telegram_allowed_users, store, config.briefing_lookback_days],
                id="morning_briefing",
            )
            logger.info(f"Scheduled morning briefing at {hour:02d}:{minute:02d}")
        except ValueError:
            logger.warning(f"Invalid briefing time format: {config.telegram_briefing_time}")

    if config.telegram_recap_time:
        try:
            hour, minute = _parse_time(config.telegram_recap_time)
            scheduler.add_job(
                send_scheduled_recap,
                CronTrigger(hour=hour, minute=minute),
                args=[app.bot, config.telegram_allowed_users, store],
                id="evening_recap",
            )
            logger.info(f"Scheduled evening recap at {hour:02d}:{minute:02d}")
        except ValueError:
            logger.warning(f"Invalid recap time format: {config.telegram_recap_time}")

    return scheduler


async def send_scheduled_briefing(bot: Bot, user_ids: list[int], store: EntityStore, lookback_days: int = 3):
    """Generate one briefing and send it to all authorized users."""
    logger.info("Sending scheduled morning briefing")

    try:
        briefing = start_day(store, lookback_days)
    except StoreError as e:
        logger.error(f"Error generating briefing: {e}")
        return

    for user_id in user_ids:
        try:
            await send_markdown(bot, briefing, chat_id=user_id)
        except Exception as e:
            logger.error(f"Failed to send briefing to user {user_id}: {e}")


async def send_scheduled_recap(bot: Bot, user_ids: list[int], store: EntityStore):
    """Compile today's recap and send the summary to all authorized users."""
    logger.info("Compiling scheduled evening recap")

    try:
        confirmation = recap_day(store)
    except StoreError as e:
        logger.error(f"Error compiling recap: {e}")
        return

    for user_id in user_ids:
        try:
            await bot.send_message(chat_id=user_id, text=confirmation)
        except Exception as e:
            logger.error(f"Failed to send recap to user {user_id}: {e}")


def run_bot():
    """Run the Telegram bot."""
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.INFO,
    )

    config = load_config()
    store = open_store(config)
    app = create_application(store, config)
    scheduler = setup_scheduler(app, store, config)

    async def post_init(application: Application) -> None:
        """Start scheduler after event loop is running."""
        scheduler.start()
        logger.info("Scheduler started")

    async def post_shutdown(application: Application) -> None:
        if scheduler.running:
            scheduler.shutdown(wait=False)
        store.close()
        logger.info("Store closed")

    app.post_init = post_init
    app.post_shutdown = post_shutdown

    if config.telegram_allowed_users:
        logger.info(f"Bot authorized for users: {config.telegram_allowed_users}")
    else:
        logger.warning("No TELEGRAM_ALLOWED_USERS configured - bot is open to anyone!")

    logger.info("Starting Coach Telegram bot...")

    app.run_polling(allowed_updates=Update.ALL_TYPES)
