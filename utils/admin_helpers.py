"""
Helper functions for reporting events to the admin chat.
"""

import logging
from html import escape
from typing import Optional

from aiogram import Bot

from core.config import Config

logger = logging.getLogger(__name__)


def is_admin_chat_configured() -> bool:
    return Config.ADMIN_CHAT_ID != 0


async def notify_admins(bot: Bot, message_text: str, chat_id: Optional[int] = None) -> bool:
    """
    Send a report to the admin chat.

    Best-effort: never raises.

    Returns:
        True if sent successfully, False otherwise
    """
    target = chat_id if chat_id is not None else Config.ADMIN_CHAT_ID
    if not target:
        logger.warning("Admin chat not configured (set ADMIN_CHAT_ID)")
        return False

    try:
        await bot.send_message(target, message_text)
        return True
    except Exception as e:
        logger.error(f"Error sending message to admin chat: {e}", exc_info=True)
        return False


def format_user(user) -> str:
    """Format a Telegram user for admin reports."""
    if user is None:
        return "unknown user"
    username = f"@{escape(user.username)}" if getattr(user, "username", None) else "no username"
    return f"{user.id} ({username})"
