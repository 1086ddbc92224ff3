"""Shortener provider selection."""

import logging

from core.config import Config
from shortener.base import LinkShortener
from shortener.adrinolinks import AdrinolinksShortener
from shortener.mock_shortener import MockShortener

logger = logging.getLogger(__name__)


def create_shortener() -> LinkShortener:
    """Create the shortener configured by SHORTENER_PROVIDER."""
    provider = (Config.SHORTENER_PROVIDER or "").lower()
    if provider == "mock":
        logger.warning("⚠️ Using mock link shortener: access links are not monetized")
        return MockShortener()
    if provider != "adrinolinks":
        raise ValueError(f"Unknown SHORTENER_PROVIDER: {Config.SHORTENER_PROVIDER}")
    return AdrinolinksShortener(
        api_url=Config.SHORTENER_API_URL,
        api_key=Config.SHORTENER_API_KEY,
        timeout_s=Config.SHORTENER_TIMEOUT_SECONDS,
    )
