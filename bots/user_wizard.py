"""
User library wizard.

Users with active access walk subject -> chapter -> content type -> item;
selecting an item forwards the stored message from the source chat.
"""

import logging
from html import escape
from typing import Optional

from aiogram import Bot
from aiogram.types import User

from core.config import Config
from core.models import WizardRole, WizardState, WizardStep
from services.access_service import AccessService
from services.content_service import ContentService
from services.session_service import SessionStore
from bots.navigation import NavigationWizard
from utils.admin_helpers import format_user, notify_admins

logger = logging.getLogger(__name__)

ACCESS_EXPIRED_TEXT = "⏳ Your access has expired. Send /start to get a new access link."
NOT_FOUND_TEXT = "❌ Content not found."
FORWARD_FAILED_TEXT = "❌ Could not send this content right now. Please try again later or contact an admin."


class UserWizard(NavigationWizard):
    """Navigation wizard ending in message forwarding."""

    role = WizardRole.USER

    def __init__(self, bot: Bot, content_service: ContentService, sessions: SessionStore,
                 access_service: AccessService, source_chat_id: Optional[int] = None,
                 items_per_page: Optional[int] = None):
        super().__init__(bot, content_service, sessions, items_per_page)
        self.access = access_service
        self.source_chat_id = source_chat_id if source_chat_id is not None else Config.SOURCE_CHAT_ID

    async def authorize(self, user: Optional[User], chat_id: int) -> bool:
        if user is not None and await self.access.check_access(user.id):
            return True
        self.sessions.clear(chat_id)
        await self.bot.send_message(chat_id, ACCESS_EXPIRED_TEXT)
        return False

    async def on_content_type_selected(self, chat_id: int, state: WizardState, user: Optional[User]):
        state.step = WizardStep.ITEM
        await self.render(chat_id, state)

    async def on_item_selected(self, chat_id: int, state: WizardState, label: str, user: Optional[User]):
        where = f"{state.subject} / {state.chapter} / {state.content_type.value} / {label}"
        locator = await self.content.resolve_locator(state.subject, state.chapter, state.content_type, label)
        if locator is None:
            await self.bot.send_message(chat_id, NOT_FOUND_TEXT)
            await notify_admins(
                self.bot,
                f"⚠️ <b>Content not found</b>\n\n{escape(where)}\nRequested by: {format_user(user)}",
            )
            return

        try:
            await self.bot.forward_message(
                chat_id=chat_id,
                from_chat_id=self.source_chat_id,
                message_id=locator.message_id,
            )
            logger.info(f"📤 Forwarded {where} ({locator}) to chat {chat_id}")
        except Exception as e:
            logger.error(f"Error forwarding {where} ({locator}) to chat {chat_id}: {e}", exc_info=True)
            await self.bot.send_message(chat_id, FORWARD_FAILED_TEXT)
            await notify_admins(
                self.bot,
                "❌ <b>Forward failed</b>\n\n"
                f"User: {format_user(user)}\n"
                f"Content: {escape(where)}\n"
                f"Locator: {locator}\n"
                f"Source chat: {self.source_chat_id}\n"
                f"Target chat: {chat_id}\n"
                f"Error: {escape(str(e))}",
            )
