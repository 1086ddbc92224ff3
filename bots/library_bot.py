"""
Library Bot - token-gated study content library.

- /start: open the library, or get a shortened access link
- Token-... text or /start payload: redeem an access token
- /admin: content management wizard for admins
- /about: short description
"""

import logging
from html import escape
from typing import FrozenSet, Optional

from aiogram import Bot, Dispatcher, F
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.filters import Command, CommandObject, CommandStart
from aiogram.types import CallbackQuery, Message

from core.config import Config
from core.database import Database
from core.models import WizardRole
from services.access_service import AccessService, InvalidTokenError, TOKEN_PREFIX, is_token_text
from services.catalog_loader import CatalogLoader
from services.content_service import ContentService
from services.session_service import SessionStore
from shortener.base import LinkShortener, ShortenerError
from shortener.factory import create_shortener
from bots.admin_wizard import AdminWizard
from bots.navigation import EXPIRED_TEXT
from bots.user_wizard import UserWizard
from utils.admin_helpers import format_user, notify_admins
from utils.pagination import BACK_CALLBACK
from utils.telegram_helpers import (
    GENERIC_ERROR_TEXT,
    create_access_link_keyboard,
    format_about_message,
    format_access_granted_message,
    format_access_link_message,
)

logger = logging.getLogger(__name__)

INVALID_TOKEN_TEXT = "❌ Invalid or already used token."
TEXT_HINT = "Send /start to open the library."


class LibraryBot:
    """Library Bot implementation."""

    def __init__(
        self,
        bot: Optional[Bot] = None,
        db: Optional[Database] = None,
        shortener: Optional[LinkShortener] = None,
        admin_ids: Optional[FrozenSet[int]] = None,
        source_chat_id: Optional[int] = None,
        catalog: Optional[CatalogLoader] = None,
    ):
        if bot is None:
            if not Config.BOT_TOKEN:
                raise ValueError("BOT_TOKEN not configured")
            bot = Bot(
                token=Config.BOT_TOKEN,
                default=DefaultBotProperties(parse_mode=ParseMode.HTML),
            )
        self.bot = bot
        self.dp = Dispatcher()
        self.db = db or Database()
        self.sessions = SessionStore()

        self.access_service = AccessService(self.db, shortener or create_shortener())
        self.content_service = ContentService(self.db, catalog or CatalogLoader(Config.CATALOG_PATH or None))

        self.admin_wizard = AdminWizard(
            self.bot, self.content_service, self.sessions,
            admin_ids=admin_ids if admin_ids is not None else Config.ADMIN_IDS,
        )
        self.user_wizard = UserWizard(
            self.bot, self.content_service, self.sessions,
            access_service=self.access_service, source_chat_id=source_chat_id,
        )

        self.bot_username = Config.BOT_USERNAME

        # Register handlers
        self._register_handlers()

    def _register_handlers(self):
        """Register all bot handlers (once, at startup)."""
        # Commands
        self.dp.message.register(self.handle_start, CommandStart())
        self.dp.message.register(self.handle_about, Command("about"))
        self.dp.message.register(self.handle_admin, Command("admin"))

        # Token redemption (must be before generic text)
        self.dp.message.register(self.handle_token, F.text.startswith(TOKEN_PREFIX))

        # Admin id input and everything else
        self.dp.message.register(self.handle_text, F.text & ~F.text.startswith("/"))

        # Callback handlers
        self.dp.callback_query.register(self.handle_back, F.data == BACK_CALLBACK)
        self.dp.callback_query.register(
            self.handle_admin_callback,
            F.data.startswith("admin_") | F.data.startswith("paginate_admin_"),
        )
        self.dp.callback_query.register(
            self.handle_user_callback,
            F.data.startswith("user_") | F.data.startswith("paginate_user_"),
        )

    async def _get_bot_username(self) -> str:
        if not self.bot_username:
            me = await self.bot.get_me()
            self.bot_username = me.username
        return self.bot_username

    async def _report_failure(self, chat_id: int, user, context: str, error: Exception):
        """Generic reply to the user plus a detailed admin report. Never raises."""
        logger.error(f"Error in {context} for chat {chat_id}: {error}", exc_info=error)
        try:
            await self.bot.send_message(chat_id, GENERIC_ERROR_TEXT)
        except Exception as e:
            logger.error(f"Could not send error reply to chat {chat_id}: {e}")
        await notify_admins(
            self.bot,
            f"❌ <b>Error in {context}</b>\n\nUser: {format_user(user)}\nChat: {chat_id}\n"
            f"Error: {type(error).__name__}: {escape(str(error))}",
        )

    # Commands

    async def handle_start(self, message: Message, command: Optional[CommandObject] = None):
        """Handle /start - redeem a deep-link token or open the library."""
        payload = (command.args or "").strip() if command else ""
        if is_token_text(payload):
            await self._redeem(message, payload)
            return
        await self._open_library(message)

    async def handle_about(self, message: Message):
        await self.bot.send_message(message.chat.id, format_about_message())

    async def handle_admin(self, message: Message, command: Optional[CommandObject] = None):
        """Handle /admin [Subject | Chapter | Type]."""
        try:
            await self.admin_wizard.open(message, command.args if command else None)
        except Exception as e:
            await self._report_failure(message.chat.id, message.from_user, "/admin", e)

    async def _open_library(self, message: Message):
        """Show subjects to users with access, an access link to everyone else."""
        chat_id = message.chat.id
        user = message.from_user
        try:
            if await self.access_service.check_access(user.id):
                await self.user_wizard.start(chat_id)
                return

            bot_username = await self._get_bot_username()
            short_link = await self.access_service.issue_access_link(
                user.id, user.username or "", bot_username,
            )
        except ShortenerError as e:
            logger.error(f"Shortener failed for user {user.id}: {e}")
            await self.bot.send_message(chat_id, GENERIC_ERROR_TEXT)
            await notify_admins(
                self.bot,
                f"🔗 <b>Link shortener failed</b>\n\nUser: {format_user(user)}\nError: {escape(str(e))}",
            )
            return
        except Exception as e:
            await self._report_failure(chat_id, user, "/start", e)
            return

        await self.bot.send_message(
            chat_id,
            format_access_link_message(short_link),
            reply_markup=create_access_link_keyboard(short_link),
        )

    # Text

    async def handle_token(self, message: Message):
        await self._redeem(message, message.text or "")

    async def _redeem(self, message: Message, token_text: str):
        chat_id = message.chat.id
        user = message.from_user
        try:
            try:
                await self.access_service.redeem_token(token_text, user.id, user.username or "")
            except InvalidTokenError as e:
                logger.info(f"Token rejected for user {user.id}: {e}")
                await self.bot.send_message(chat_id, INVALID_TOKEN_TEXT)
                return

            await self.bot.send_message(chat_id, format_access_granted_message())
            await self.user_wizard.start(chat_id)
        except Exception as e:
            await self._report_failure(chat_id, user, "token redemption", e)

    async def handle_text(self, message: Message):
        """Route free text: admin id input when awaited, a hint otherwise."""
        chat_id = message.chat.id
        if not self.admin_wizard.is_awaiting_ids(chat_id):
            await self.bot.send_message(chat_id, TEXT_HINT)
            return
        try:
            await self.admin_wizard.handle_ids_input(message)
        except Exception as e:
            await self._report_failure(chat_id, message.from_user, "content save", e)

    # Callbacks

    async def _ack(self, callback: CallbackQuery):
        try:
            await callback.answer()
        except Exception as e:
            # Queries older than a few minutes can't be answered
            logger.debug(f"Could not answer callback: {e}")

    async def handle_admin_callback(self, callback: CallbackQuery):
        await self._ack(callback)
        if callback.message is None:
            return
        try:
            if (callback.data or "").startswith("paginate_"):
                await self.admin_wizard.handle_paginate(callback)
            else:
                await self.admin_wizard.handle_select(callback)
        except Exception as e:
            await self._report_failure(callback.message.chat.id, callback.from_user, "admin wizard", e)

    async def handle_user_callback(self, callback: CallbackQuery):
        await self._ack(callback)
        if callback.message is None:
            return
        try:
            if (callback.data or "").startswith("paginate_"):
                await self.user_wizard.handle_paginate(callback)
            else:
                await self.user_wizard.handle_select(callback)
        except Exception as e:
            await self._report_failure(callback.message.chat.id, callback.from_user, "library wizard", e)

    async def handle_back(self, callback: CallbackQuery):
        await self._ack(callback)
        if callback.message is None:
            return
        chat_id = callback.message.chat.id
        try:
            state = self.sessions.get(chat_id)
            if state is None:
                await self.bot.send_message(chat_id, EXPIRED_TEXT)
                return
            wizard = self.admin_wizard if state.role == WizardRole.ADMIN else self.user_wizard
            await wizard.handle_back(callback)
        except Exception as e:
            await self._report_failure(chat_id, callback.from_user, "back navigation", e)

    # Lifecycle

    async def start(self):
        """Connect storage and start polling."""
        await self.db.connect()
        bot_username = await self._get_bot_username()
        logger.info(f"✅ Library Bot connected: @{bot_username}")
        if not self.admin_wizard.admin_ids:
            logger.warning("⚠️ ADMIN_IDS is empty: /admin is disabled for everyone")
        await self.bot.delete_webhook(drop_pending_updates=True)
        await self.dp.start_polling(self.bot)

    async def stop(self):
        """Close bot session and database."""
        try:
            await self.bot.session.close()
        finally:
            await self.db.close()
