"""
Data models for the Study Library Bot.

This module defines the data structures used throughout the system:
- Content types stored under each chapter
- Message locators pointing at posts in the source chat
- Access tokens and their stored representation
- Navigation wizard state
"""

from enum import Enum
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Dict, Any


class ContentType(str, Enum):
    """Kinds of material stored under a chapter."""
    DPP = "DPP"
    NOTES = "Notes"
    LECTURES = "Lectures"


@dataclass(frozen=True)
class Locator:
    """
    Position of a message in the source chat.

    Text form is either "<message_id>" or "<thread_id>/<message_id>".
    """
    message_id: int
    thread_id: Optional[int] = None

    @classmethod
    def parse(cls, raw: str) -> "Locator":
        text = (raw or "").strip()
        if not text:
            raise ValueError("empty locator")
        if "/" in text:
            thread_part, _, message_part = text.partition("/")
            thread_id = _positive_int(thread_part, "thread id")
            message_id = _positive_int(message_part, "message id")
            return cls(message_id=message_id, thread_id=thread_id)
        return cls(message_id=_positive_int(text, "message id"))

    def __str__(self) -> str:
        if self.thread_id is not None:
            return f"{self.thread_id}/{self.message_id}"
        return str(self.message_id)


def _positive_int(raw: str, what: str) -> int:
    text = raw.strip()
    if not text.isdecimal():
        raise ValueError(f"{what} must be a number, got {raw!r}")
    value = int(text)
    if value <= 0:
        raise ValueError(f"{what} must be positive")
    return value


@dataclass
class TokenRecord:
    """Single-use access token issued to one user."""
    token: str
    userid: str
    username: str
    created_at: datetime
    date: str                       # DDMMYYYY the token was minted on
    used: bool = False
    short_link: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "used": self.used,
            "userid": self.userid,
            "username": self.username,
            "createdAt": self.created_at.isoformat(),
            "date": self.date,
        }
        if self.short_link:
            data["shortLink"] = self.short_link
        return data

    @classmethod
    def from_dict(cls, token: str, data: Dict[str, Any]) -> "TokenRecord":
        created_raw = data.get("createdAt")
        created_at = datetime.fromisoformat(created_raw) if created_raw else datetime.min.replace(tzinfo=timezone.utc)
        return cls(
            token=token,
            userid=str(data.get("userid", "")),
            username=data.get("username") or "",
            created_at=created_at,
            date=str(data.get("date", "")),
            used=bool(data.get("used", False)),
            short_link=data.get("shortLink") or None,
        )


class WizardRole(str, Enum):
    """Which variant of the navigation wizard owns a session."""
    ADMIN = "admin"
    USER = "user"


class WizardStep(str, Enum):
    """Dialog depth of the navigation wizard."""
    SUBJECT = "subject"
    CHAPTER = "chapter"
    CONTENT_TYPE = "type"
    ITEM = "item"
    AWAITING_IDS = "awaiting_ids"   # admin only


@dataclass
class WizardState:
    """Per-chat position in the navigation wizard."""
    role: WizardRole
    step: WizardStep = WizardStep.SUBJECT
    subject: Optional[str] = None
    chapter: Optional[str] = None
    content_type: Optional[ContentType] = None
    page: int = 0
    message_id: Optional[int] = None   # message being edited in place
