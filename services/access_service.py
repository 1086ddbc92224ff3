"""
Access service for token issuance, redemption and access checks.

Users without access get a single-use token wrapped in a bot deep link
and shortened through the affiliate shortener. Sending the token back
(or opening the deep link) redeems it for a fixed access window.
"""

import logging
import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Optional

from core.config import Config
from core.database import Database
from core.models import TokenRecord
from shortener.base import LinkShortener

logger = logging.getLogger(__name__)

TOKEN_PREFIX = "Token-"
_RANDOM_ALPHABET = string.ascii_lowercase + string.digits


class InvalidTokenError(Exception):
    """Token unknown, already used or issued to another user."""


def is_token_text(text: Optional[str]) -> bool:
    return bool(text) and text.startswith(TOKEN_PREFIX)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AccessService:
    """Service for access control operations."""

    def __init__(self, db: Database, shortener: LinkShortener, access_hours: Optional[int] = None):
        self.db = db
        self.shortener = shortener
        self.access_duration = timedelta(hours=access_hours or Config.ACCESS_DURATION_HOURS)

    async def check_access(self, user_id: int, now: Optional[datetime] = None) -> bool:
        """Access is granted strictly before the stored expiry."""
        expiry = await self.db.get_access_expiry(user_id)
        if expiry is None:
            return False
        return (now or _utcnow()) < expiry

    async def grant_access(self, user_id: int, username: str, now: Optional[datetime] = None) -> datetime:
        """Set expiry to now + access window, replacing any earlier expiry."""
        expiry = (now or _utcnow()) + self.access_duration
        await self.db.set_access(user_id, username, expiry)
        return expiry

    @staticmethod
    def token_date(now: datetime) -> str:
        return now.strftime("%d%m%Y")

    def mint_token(self, user_id: int, username: str, now: datetime) -> TokenRecord:
        """Create (but don't store) a fresh token record."""
        random_id = "".join(secrets.choice(_RANDOM_ALPHABET) for _ in range(6))
        date = self.token_date(now)
        return TokenRecord(
            token=f"{TOKEN_PREFIX}{user_id}-{random_id}-{date}",
            userid=str(user_id),
            username=username or "",
            created_at=now,
            date=date,
        )

    async def get_or_create_token(self, user_id: int, username: str,
                                  now: Optional[datetime] = None) -> TokenRecord:
        """
        Return today's unused token for the user, minting one if needed.

        At most one unused token per user and day is offered.
        """
        now = now or _utcnow()
        today = self.token_date(now)

        records = await self.db.get_tokens_for_user(user_id)
        for record in sorted(records, key=lambda r: r.created_at, reverse=True):
            if not record.used and record.date == today:
                return record

        record = self.mint_token(user_id, username, now)
        await self.db.save_token(record)
        logger.info(f"🎟 Token minted for user {user_id}")
        return record

    async def issue_access_link(self, user_id: int, username: str, bot_username: str,
                                now: Optional[datetime] = None) -> str:
        """
        Return the short redemption link for the user's token.

        A cached link on a reused token is returned without calling the
        shortener. Raises ShortenerError when shortening fails.
        """
        record = await self.get_or_create_token(user_id, username, now)
        if record.short_link:
            return record.short_link

        long_url = f"https://t.me/{bot_username}?start={record.token}"
        alias = record.token[len(TOKEN_PREFIX):]
        short_link = await self.shortener.shorten(long_url, alias)
        await self.db.set_token_short_link(record.token, short_link)
        return short_link

    async def redeem_token(self, token_text: str, user_id: int, username: str,
                           now: Optional[datetime] = None) -> datetime:
        """
        Redeem a token and grant access.

        Returns the new expiry. Raises InvalidTokenError without changing
        anything when the token is unknown, used or owned by someone else.
        """
        token = (token_text or "").strip()
        record = await self.db.get_token(token)
        if record is None:
            raise InvalidTokenError("unknown token")
        if record.used:
            raise InvalidTokenError("token already used")
        if record.userid != str(user_id):
            logger.warning(f"User {user_id} tried to redeem token of user {record.userid}")
            raise InvalidTokenError("token belongs to another user")

        if not await self.db.mark_token_used(token):
            raise InvalidTokenError("token already used")

        expiry = await self.grant_access(user_id, username, now)
        logger.info(f"✅ Access granted to user {user_id} until {expiry.isoformat()}")
        return expiry
