"""Test doubles for the Telegram API and the link shortener."""

from types import SimpleNamespace
from typing import List, Optional
from unittest.mock import AsyncMock

from shortener.base import LinkShortener, ShortenerError

ADMIN_ID = 7001
SOURCE_CHAT_ID = -1001234567890
ADMIN_CHAT_ID = -1009999


class FakeBot:
    """Records outgoing Bot API calls. Sent messages get increasing ids."""

    def __init__(self):
        self.sent: List[SimpleNamespace] = []
        self.edited: List[SimpleNamespace] = []
        self.forwarded: List[SimpleNamespace] = []
        self.fail_edit: Optional[Exception] = None
        self.fail_forward: Optional[Exception] = None
        self._next_message_id = 100

    async def send_message(self, chat_id, text, reply_markup=None, **kwargs):
        self._next_message_id += 1
        self.sent.append(SimpleNamespace(
            chat_id=chat_id, text=text, reply_markup=reply_markup, message_id=self._next_message_id,
        ))
        return SimpleNamespace(message_id=self._next_message_id, chat=SimpleNamespace(id=chat_id))

    async def edit_message_text(self, text, chat_id=None, message_id=None, reply_markup=None, **kwargs):
        if self.fail_edit is not None:
            raise self.fail_edit
        self.edited.append(SimpleNamespace(
            chat_id=chat_id, text=text, reply_markup=reply_markup, message_id=message_id,
        ))

    async def forward_message(self, chat_id, from_chat_id, message_id, message_thread_id=None, **kwargs):
        if self.fail_forward is not None:
            raise self.fail_forward
        self.forwarded.append(SimpleNamespace(
            chat_id=chat_id, from_chat_id=from_chat_id, message_id=message_id,
            message_thread_id=message_thread_id,
        ))

    async def get_me(self):
        return SimpleNamespace(username="LibraryTestBot")

    def texts(self, chat_id=None) -> List[str]:
        return [m.text for m in self.sent if chat_id is None or m.chat_id == chat_id]


class StubShortener(LinkShortener):
    def __init__(self, short_url: str = "https://short.example/abc", error: Optional[str] = None):
        self.short_url = short_url
        self.error = error
        self.calls = []

    async def shorten(self, long_url: str, alias: str) -> str:
        self.calls.append((long_url, alias))
        if self.error:
            raise ShortenerError(self.error)
        return self.short_url


def make_user(user_id: int, username: Optional[str] = "student"):
    return SimpleNamespace(id=user_id, username=username)


def make_message(text: str, user_id: int, username: Optional[str] = "student", chat_id: Optional[int] = None):
    return SimpleNamespace(
        text=text,
        from_user=make_user(user_id, username),
        chat=SimpleNamespace(id=chat_id if chat_id is not None else user_id),
        message_id=1,
    )


def make_callback(data: str, user_id: int, message_id: int, username: Optional[str] = "student",
                  chat_id: Optional[int] = None):
    return SimpleNamespace(
        data=data,
        from_user=make_user(user_id, username),
        message=SimpleNamespace(
            chat=SimpleNamespace(id=chat_id if chat_id is not None else user_id),
            message_id=message_id,
        ),
        answer=AsyncMock(),
    )


def callback_data(reply_markup) -> List[str]:
    """Flatten all callback_data values of an inline keyboard."""
    return [
        button.callback_data
        for row in reply_markup.inline_keyboard
        for button in row
        if button.callback_data
    ]
