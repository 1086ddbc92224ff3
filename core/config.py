"""
Configuration management for the Study Library Bot.

Loads configuration from environment variables and provides
centralized access to all system settings.
"""

import logging
import os
import re
from pathlib import Path
from typing import FrozenSet, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)


def _get_env_value(key: str, default: str = "") -> str:
    """Read an environment variable with surrounding whitespace stripped."""
    value = os.environ.get(key, "")
    if not value:
        value = os.getenv(key, default)
    # Copy/pasted values in hosting dashboards often carry stray spaces
    return value.strip() if value else default


def _get_env_int(key: str, default: int, min_value: Optional[int] = None) -> int:
    raw = _get_env_value(key, "")
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"⚠️ Invalid integer for {key}: {raw!r}, using {default}")
        return default
    if min_value is not None and value < min_value:
        logger.warning(f"⚠️ {key} must be at least {min_value}, got {value}, using {default}")
        return default
    return value


def parse_admin_ids(raw: str) -> FrozenSet[int]:
    """Parse a comma or whitespace separated list of Telegram user ids."""
    ids = set()
    for part in re.split(r"[,\s]+", raw or ""):
        if not part:
            continue
        try:
            ids.add(int(part))
        except ValueError:
            logger.warning(f"⚠️ Ignoring invalid admin id: {part!r}")
    return frozenset(ids)


class Config:
    """Application configuration."""

    # Telegram
    BOT_TOKEN: str = _get_env_value("BOT_TOKEN", "")
    # Used for deep links; resolved via get_me() when empty
    BOT_USERNAME: str = _get_env_value("BOT_USERNAME", "").lstrip("@")

    # Admin allow-list and notification chat
    ADMIN_IDS: FrozenSet[int] = parse_admin_ids(_get_env_value("ADMIN_IDS", ""))
    ADMIN_CHAT_ID: int = _get_env_int("ADMIN_CHAT_ID", 0)

    # Chat whose messages are forwarded to users
    SOURCE_CHAT_ID: int = _get_env_int("SOURCE_CHAT_ID", 0)

    # Link shortener
    SHORTENER_PROVIDER: str = _get_env_value("SHORTENER_PROVIDER", "adrinolinks")  # "adrinolinks" or "mock"
    SHORTENER_API_URL: str = _get_env_value("SHORTENER_API_URL", "https://adrinolinks.in/api")
    SHORTENER_API_KEY: str = _get_env_value("SHORTENER_API_KEY", "")
    SHORTENER_TIMEOUT_SECONDS: int = _get_env_int("SHORTENER_TIMEOUT_SECONDS", 15)

    # Storage
    DATABASE_PATH: str = _get_env_value("DATABASE_PATH", "./data/library.db")
    CATALOG_PATH: str = _get_env_value("CATALOG_PATH", "")

    # Access settings
    ACCESS_DURATION_HOURS: int = _get_env_int("ACCESS_DURATION_HOURS", 24, min_value=1)
    ITEMS_PER_PAGE: int = _get_env_int("ITEMS_PER_PAGE", 5, min_value=1)

    # Healthcheck server
    PORT: int = _get_env_int("PORT", 8080)

    @classmethod
    def validate(cls) -> bool:
        """Validate that required configuration is present."""
        token = _get_env_value("BOT_TOKEN", "") or cls.BOT_TOKEN
        cls.BOT_TOKEN = token.strip() if token else ""
        return bool(cls.BOT_TOKEN)

    @classmethod
    def ensure_data_directory(cls):
        """Ensure data directory exists for database."""
        db_path = Path(cls.DATABASE_PATH)
        try:
            db_path.parent.mkdir(parents=True, exist_ok=True)
        except Exception as e:
            logger.warning(f"⚠️ Could not create database directory: {e}")
            cls.DATABASE_PATH = "library.db"
