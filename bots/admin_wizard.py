"""
Admin content wizard.

Admins walk subject -> chapter -> content type and then send the
label,message-id list that replaces the stored map for that type.
"""

import logging
from html import escape
from typing import FrozenSet, Optional

from aiogram import Bot
from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup, Message, User

from core.models import ContentType, WizardRole, WizardState, WizardStep
from services.content_service import ContentService, IdPairsError
from services.session_service import SessionStore
from bots.navigation import NavigationWizard
from utils.admin_helpers import format_user, notify_admins
from utils.pagination import BACK_CALLBACK

logger = logging.getLogger(__name__)

UNAUTHORIZED_TEXT = "⛔ You are not authorized to use admin commands."
ADMIN_USAGE_TEXT = (
    "Usage: <code>/admin</code> or <code>/admin Subject | Chapter | Type</code>\n"
    "Types: " + ", ".join(content_type.value for content_type in ContentType)
)


def _parse_content_type(raw: str) -> Optional[ContentType]:
    for content_type in ContentType:
        if content_type.value.lower() == raw.strip().lower():
            return content_type
    return None


class AdminWizard(NavigationWizard):
    """Navigation wizard ending in message id input."""

    role = WizardRole.ADMIN
    include_catalog = True

    def __init__(self, bot: Bot, content_service: ContentService, sessions: SessionStore,
                 admin_ids: FrozenSet[int], items_per_page: Optional[int] = None):
        super().__init__(bot, content_service, sessions, items_per_page)
        self.admin_ids = frozenset(admin_ids)

    def is_admin(self, user_id: Optional[int]) -> bool:
        return user_id is not None and user_id in self.admin_ids

    async def authorize(self, user: Optional[User], chat_id: int) -> bool:
        if user is not None and self.is_admin(user.id):
            return True
        logger.warning(f"Unauthorized admin access attempt by {getattr(user, 'id', None)} in chat {chat_id}")
        await self.bot.send_message(chat_id, UNAUTHORIZED_TEXT)
        await notify_admins(
            self.bot,
            f"🚨 <b>Unauthorized admin access attempt</b>\n\nUser: {format_user(user)}\nChat: {chat_id}",
        )
        return False

    async def open(self, message: Message, params: Optional[str] = None):
        """
        Handle /admin [Subject | Chapter | Type].

        Each given level is pre-filled, so new subjects and chapters can be
        created by naming them here.
        """
        chat_id = message.chat.id
        if not await self.authorize(message.from_user, chat_id):
            return

        parts = [part.strip() for part in (params or "").split("|")] if params and params.strip() else []
        if len(parts) > 3 or any(not part or "/" in part for part in parts):
            await self.bot.send_message(chat_id, ADMIN_USAGE_TEXT)
            return

        state = WizardState(role=self.role)
        if len(parts) >= 1:
            state.subject = parts[0]
            state.step = WizardStep.CHAPTER
        if len(parts) >= 2:
            state.chapter = parts[1]
            state.step = WizardStep.CONTENT_TYPE
        if len(parts) == 3:
            content_type = _parse_content_type(parts[2])
            if content_type is None:
                await self.bot.send_message(chat_id, ADMIN_USAGE_TEXT)
                return
            state.content_type = content_type
            await self._prompt_ids(chat_id, state)
            return

        await self.render(chat_id, state)

    async def on_content_type_selected(self, chat_id: int, state: WizardState, user: Optional[User]):
        await self._prompt_ids(chat_id, state)

    async def on_item_selected(self, chat_id: int, state: WizardState, label: str, user: Optional[User]):
        # Admins never reach the item list
        await self._expired(chat_id)

    async def _prompt_ids(self, chat_id: int, state: WizardState):
        state.step = WizardStep.AWAITING_IDS
        path = " / ".join(escape(part) for part in (state.subject, state.chapter, state.content_type.value))
        text = (
            f"✏️ <b>{path}</b>\n\n"
            "Send the message IDs in the format:\n"
            "<code>1,12345;2,67890;3,54321</code>\n\n"
            "For topic messages use <code>number,topic_id/message_id</code>.\n"
            "The list replaces everything stored for this content type."
        )
        keyboard = InlineKeyboardMarkup(inline_keyboard=[
            [InlineKeyboardButton(text="🔙 Back", callback_data=BACK_CALLBACK)]
        ])
        state.message_id = await self.show(chat_id, text, keyboard, state.message_id)
        self.sessions.set(chat_id, state)

    def is_awaiting_ids(self, chat_id: int) -> bool:
        state = self._current_state(chat_id)
        return state is not None and state.step == WizardStep.AWAITING_IDS

    async def handle_ids_input(self, message: Message):
        """Validate and save the label,message-id list, then restart the wizard."""
        chat_id = message.chat.id
        if not await self.authorize(message.from_user, chat_id):
            return

        state = self._current_state(chat_id)
        if state is None or state.step != WizardStep.AWAITING_IDS:
            await self._expired(chat_id)
            return

        try:
            items = await self.content.save_items(
                state.subject, state.chapter, state.content_type, message.text or "",
            )
        except IdPairsError as e:
            await self.bot.send_message(
                chat_id,
                f"❌ Invalid pair <code>{escape(e.pair)}</code>: {escape(e.reason)}\n\n"
                "Nothing was saved. Send the full list again.",
            )
            return

        path = " / ".join(escape(part) for part in (state.subject, state.chapter, state.content_type.value))
        await self.bot.send_message(chat_id, f"✅ Content saved successfully! {len(items)} items in <b>{path}</b>.")
        await self.start(chat_id)