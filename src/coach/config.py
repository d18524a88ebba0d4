"""Configuration management for Coach."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

COACH_HOME = Path(os.environ.get("COACH_HOME", Path.home() / "coach"))
CONFIG_FILE = COACH_HOME / "config" / "coach.conf"
DATA_DIR = COACH_HOME / "data"


@dataclass
class Config:
    """Coach configuration."""

    database_path: str = str(DATA_DIR / "coach.sqlite")
    timezone: str = "America/Toronto"
    briefing_lookback_days: int = 3
    # Telegram bot settings
    telegram_bot_token: str = ""
    telegram_allowed_users: list[int] = field(default_factory=list)
    telegram_briefing_time: str = "06:50"
    telegram_recap_time: str = "21:00"

    @property
    def database_file(self) -> Path:
        return Path(self.database_path).expanduser()


def _strip_value(value: str) -> str:
    """Unquote a value, dropping inline comments on unquoted ones."""
    if value[:1] in ('"', "'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        return value[1:end_quote] if end_quote != -1 else value[1:]
    if "#" in value:
        return value.split("#")[0].strip()
    return value


def _parse_int(key: str, value: str, default: int) -> int:
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring non-integer {key.upper()}: {value!r}")
        return default


def load_config(config_file: Path | None = None) -> Config:
    """Load configuration from coach.conf file."""
    config = Config()
    config_file = config_file or CONFIG_FILE

    if not config_file.exists():
        return config

    for line in config_file.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _strip_value(value.strip())

        match key:
            case "database_path":
                config.database_path = value
            case "timezone":
                config.timezone = value
            case "briefing_lookback_days":
                days = _parse_int(key, value, config.briefing_lookback_days)
                if 1 <= days <= 7:
                    config.briefing_lookback_days = days
                else:
                    logger.warning(f"BRIEFING_LOOKBACK_DAYS must be 1-7, got {days}")
            case "telegram_bot_token":
                config.telegram_bot_token = value
            case "telegram_allowed_users":
                users = []
                for u in value.split(","):
                    if u.strip():
                        users.append(_parse_int(key, u.strip(), 0))
                config.telegram_allowed_users = [u for u in users if u]
            case "telegram_briefing_time":
                config.telegram_briefing_time = value
            case "telegram_recap_time":
                config.telegram_recap_time = value
            case _:
                logger.debug(f"Unknown config key: {key}")

    return config
