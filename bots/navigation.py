"""
Navigation wizard shared by the admin and user flows.

subject -> chapter -> content type -> (admin: id input | user: item list)

Each level is rendered with the pagination helper by editing the wizard
message in place. The position is kept as a typed WizardState per chat;
selected values are read back by stripping the known callback prefix.
"""

import logging
from html import escape
from typing import Callable, List, Optional, Tuple

from aiogram import Bot
from aiogram.exceptions import TelegramBadRequest
from aiogram.types import CallbackQuery, InlineKeyboardMarkup, User

from core.config import Config
from core.models import ContentType, WizardRole, WizardState, WizardStep
from services.content_service import ContentService
from services.session_service import SessionStore
from utils.pagination import PaginatedKeyboard, is_page_in_range, paginate, parse_pagination_data

logger = logging.getLogger(__name__)

EXPIRED_TEXT = "⌛ This menu has expired, please start again."
PAGE_OUT_OF_RANGE_TEXT = "⚠️ Page out of range."

# Step a "back" press returns to
_PREVIOUS_STEP = {
    WizardStep.CHAPTER: WizardStep.SUBJECT,
    WizardStep.CONTENT_TYPE: WizardStep.CHAPTER,
    WizardStep.ITEM: WizardStep.CONTENT_TYPE,
    WizardStep.AWAITING_IDS: WizardStep.CONTENT_TYPE,
}

_SELECTABLE_STEPS = (WizardStep.SUBJECT, WizardStep.CHAPTER, WizardStep.CONTENT_TYPE, WizardStep.ITEM)


class NavigationWizard:
    """Base navigation wizard; subclasses decide what the deepest level does."""

    role: WizardRole
    include_catalog = False

    def __init__(self, bot: Bot, content_service: ContentService, sessions: SessionStore,
                 items_per_page: Optional[int] = None):
        self.bot = bot
        self.content = content_service
        self.sessions = sessions
        self.items_per_page = items_per_page or Config.ITEMS_PER_PAGE

    def prefix(self, step: WizardStep) -> str:
        return f"{self.role.value}_{step.value}"

    def owns(self, data: str) -> bool:
        """Whether callback data belongs to this wizard."""
        return data.startswith(f"{self.role.value}_") or data.startswith(f"paginate_{self.role.value}_")

    # Hooks

    async def authorize(self, user: Optional[User], chat_id: int) -> bool:
        return True

    async def on_content_type_selected(self, chat_id: int, state: WizardState, user: Optional[User]):
        raise NotImplementedError

    async def on_item_selected(self, chat_id: int, state: WizardState, label: str, user: Optional[User]):
        raise NotImplementedError

    # Rendering

    async def start(self, chat_id: int):
        """Show the subject list in a fresh message."""
        await self.render(chat_id, WizardState(role=self.role))

    async def _options(self, state: WizardState) -> List[str]:
        if state.step == WizardStep.SUBJECT:
            return await self.content.list_subjects(include_catalog=self.include_catalog)
        if state.step == WizardStep.CHAPTER:
            return await self.content.list_chapters(state.subject, include_catalog=self.include_catalog)
        if state.step == WizardStep.CONTENT_TYPE:
            return [content_type.value for content_type in ContentType]
        if state.step == WizardStep.ITEM:
            return await self.content.list_items(state.subject, state.chapter, state.content_type)
        return []

    def _title(self, state: WizardState) -> str:
        if state.step == WizardStep.SUBJECT:
            return "📚 Select a subject:"
        path = " / ".join(escape(part) for part in (state.subject, state.chapter) if part)
        if state.step == WizardStep.CHAPTER:
            return f"📖 <b>{path}</b>\n\nSelect a chapter:"
        if state.step == WizardStep.CONTENT_TYPE:
            return f"📖 <b>{path}</b>\n\nSelect content type:"
        return f"📖 <b>{path}</b>\n\nAvailable {escape(state.content_type.value)}:"

    def _caption(self, state: WizardState) -> Optional[Callable[[str], str]]:
        if state.step == WizardStep.ITEM:
            content_type = state.content_type.value
            return lambda label: f"{content_type} {label}"
        return None

    async def _build(self, state: WizardState, page: int) -> Tuple[str, PaginatedKeyboard]:
        options = await self._options(state)
        keyboard = paginate(
            options, page, self.prefix(state.step),
            items_per_page=self.items_per_page, caption=self._caption(state),
        )
        text = self._title(state)
        if not options:
            text += "\n\n<i>Nothing here yet.</i>"
        elif keyboard.total_pages > 1:
            text += f"\n\nPage {page + 1}/{keyboard.total_pages}"
        return text, keyboard

    async def render(self, chat_id: int, state: WizardState, page: int = 0):
        """Render the level of state and remember it as the chat's position."""
        text, keyboard = await self._build(state, page)
        state.page = page
        state.message_id = await self.show(chat_id, text, keyboard.reply_markup, state.message_id)
        self.sessions.set(chat_id, state)

    async def show(self, chat_id: int, text: str, reply_markup: Optional[InlineKeyboardMarkup],
                   message_id: Optional[int]) -> int:
        """
        Edit the wizard message in place, or send a new one.

        Returns the id of the message now showing the wizard.
        """
        if message_id is not None:
            try:
                await self.bot.edit_message_text(
                    text=text, chat_id=chat_id, message_id=message_id, reply_markup=reply_markup,
                )
                return message_id
            except TelegramBadRequest as e:
                if "message is not modified" in str(e):
                    return message_id
                logger.info(f"Could not edit message {message_id} in chat {chat_id}: {e}")
            except Exception as e:
                logger.warning(f"Could not edit message {message_id} in chat {chat_id}: {e}")

        message = await self.bot.send_message(chat_id, text, reply_markup=reply_markup)
        return message.message_id

    async def _expired(self, chat_id: int):
        await self.bot.send_message(chat_id, EXPIRED_TEXT)

    def _current_state(self, chat_id: int) -> Optional[WizardState]:
        state = self.sessions.get(chat_id)
        if state is None or state.role != self.role:
            return None
        return state

    # Callback handling

    async def handle_select(self, callback: CallbackQuery):
        """Handle "<role>_<step>_<value>" presses."""
        chat_id = callback.message.chat.id
        if not await self.authorize(callback.from_user, chat_id):
            return

        data = callback.data or ""
        step = next(
            (s for s in _SELECTABLE_STEPS if data.startswith(self.prefix(s) + "_")),
            None,
        )
        state = self._current_state(chat_id)
        if step is None:
            await self._expired(chat_id)
            return
        if step == WizardStep.SUBJECT:
            # Subject buttons need no earlier context
            previous_id = state.message_id if state else None
            state = WizardState(role=self.role, step=WizardStep.SUBJECT, message_id=previous_id)
        elif state is None or state.step != step:
            await self._expired(chat_id)
            return

        value = data[len(self.prefix(step)) + 1:]
        state.message_id = callback.message.message_id

        if step == WizardStep.SUBJECT:
            state.subject = value
            state.step = WizardStep.CHAPTER
            await self.render(chat_id, state)
        elif step == WizardStep.CHAPTER:
            state.chapter = value
            state.step = WizardStep.CONTENT_TYPE
            await self.render(chat_id, state)
        elif step == WizardStep.CONTENT_TYPE:
            try:
                state.content_type = ContentType(value)
            except ValueError:
                await self._expired(chat_id)
                return
            await self.on_content_type_selected(chat_id, state, callback.from_user)
        else:
            await self.on_item_selected(chat_id, state, value, callback.from_user)

    async def handle_back(self, callback: CallbackQuery):
        """Return exactly one level, rebuilt from the stored state."""
        chat_id = callback.message.chat.id
        if not await self.authorize(callback.from_user, chat_id):
            return

        state = self._current_state(chat_id)
        if state is None:
            await self._expired(chat_id)
            return

        state.message_id = callback.message.message_id
        previous = _PREVIOUS_STEP.get(state.step)
        if previous is not None:
            state.step = previous
            if previous == WizardStep.SUBJECT:
                state.subject = None
            if previous in (WizardStep.SUBJECT, WizardStep.CHAPTER):
                state.chapter = None
            state.content_type = None
        await self.render(chat_id, state)

    async def handle_paginate(self, callback: CallbackQuery):
        """Re-render the current level at another page."""
        chat_id = callback.message.chat.id
        if not await self.authorize(callback.from_user, chat_id):
            return

        try:
            prefix, _, page = parse_pagination_data(callback.data or "")
        except ValueError:
            logger.warning(f"Malformed pagination data: {callback.data!r}")
            await self._expired(chat_id)
            return

        state = self._current_state(chat_id)
        if state is None or prefix != self.prefix(state.step):
            await self._expired(chat_id)
            return

        text, keyboard = await self._build(state, page)
        if not is_page_in_range(page, keyboard.total_pages):
            await self.bot.send_message(chat_id, PAGE_OUT_OF_RANGE_TEXT)
            return

        state.page = page
        state.message_id = await self.show(chat_id, text, keyboard.reply_markup, callback.message.message_id)
        self.sessions.set(chat_id, state)
