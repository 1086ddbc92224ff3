"""
Telegram helper utilities.

Common functions for formatting messages and creating keyboards.
"""

from html import escape

from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton

from core.config import Config

GENERIC_ERROR_TEXT = "❌ Something went wrong, please try again or contact an admin."


def create_access_link_keyboard(short_link: str) -> InlineKeyboardMarkup:
    """Create keyboard with the access link button."""
    return InlineKeyboardMarkup(inline_keyboard=[
        [
            InlineKeyboardButton(
                text=f"🔓 Get {Config.ACCESS_DURATION_HOURS}-hour access",
                url=short_link,
            )
        ]
    ])


def format_access_link_message(short_link: str) -> str:
    return (
        f"🔐 <b>Click the link below to get {Config.ACCESS_DURATION_HOURS}-hour access:</b>\n"
        f"{escape(short_link)}\n\n"
        "1) Open the link and complete the steps\n"
        "2) You will be sent back to the bot and access unlocks automatically\n\n"
        "If the bot does not open, send the token text from the link here."
    )


def format_access_granted_message() -> str:
    return f"✅ Access granted for {Config.ACCESS_DURATION_HOURS} hours!"


def format_about_message() -> str:
    return (
        "📚 <b>Study Library Bot</b>\n\n"
        "Browse lectures, notes and DPPs by subject and chapter.\n\n"
        "/start - open the library (or get an access link)\n"
        "/about - this message"
    )
