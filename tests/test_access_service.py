"""Tests for token issuance, redemption and access checks."""

from datetime import datetime, timedelta, timezone

import pytest

from services.access_service import AccessService, InvalidTokenError, is_token_text
from shortener.base import ShortenerError
from helpers import StubShortener

NOW = datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def access(db, shortener) -> AccessService:
    return AccessService(db, shortener, access_hours=24)


def test_is_token_text():
    assert is_token_text("Token-1-abc-18102026")
    assert not is_token_text("token-1")
    assert not is_token_text("")
    assert not is_token_text(None)


def test_mint_token_format(access):
    record = access.mint_token(42, "student", NOW)
    prefix, user_id, random_id, date = record.token.split("-")
    assert prefix == "Token"
    assert user_id == "42"
    assert len(random_id) == 6
    assert date == "18102026" == record.date
    assert record.used is False


async def test_expiry_boundary(access):
    expiry = await access.grant_access(42, "student", now=NOW)
    assert expiry == NOW + timedelta(hours=24)
    assert await access.check_access(42, now=expiry - timedelta(microseconds=1))
    assert not await access.check_access(42, now=expiry)
    assert not await access.check_access(42, now=expiry + timedelta(seconds=1))


async def test_no_access_without_record(access):
    assert not await access.check_access(42, now=NOW)


async def test_redeem_grants_access(access):
    record = await access.get_or_create_token(42, "student", now=NOW)
    expiry = await access.redeem_token(record.token, 42, "student", now=NOW)
    assert expiry == NOW + timedelta(hours=24)
    assert await access.check_access(42, now=NOW)


async def test_redeem_is_one_way_latch(access, db):
    record = await access.get_or_create_token(42, "student", now=NOW)
    await access.redeem_token(record.token, 42, "student", now=NOW)

    with pytest.raises(InvalidTokenError):
        await access.redeem_token(record.token, 42, "student", now=NOW + timedelta(hours=1))
    # The failed attempt did not move the expiry
    assert await db.get_access_expiry(42) == NOW + timedelta(hours=24)


async def test_redeem_rejects_other_user(access, db):
    record = await access.get_or_create_token(42, "owner", now=NOW)
    with pytest.raises(InvalidTokenError):
        await access.redeem_token(record.token, 99, "thief", now=NOW)
    assert (await db.get_token(record.token)).used is False
    assert await db.get_access_expiry(99) is None


async def test_redeem_rejects_unknown_token(access):
    with pytest.raises(InvalidTokenError):
        await access.redeem_token("Token-42-zzzzzz-18102026", 42, "student", now=NOW)


async def test_redeem_resets_rather_than_extends(access):
    first = await access.get_or_create_token(42, "student", now=NOW)
    await access.redeem_token(first.token, 42, "student", now=NOW)

    later = NOW + timedelta(hours=2)
    second = await access.get_or_create_token(42, "student", now=later)
    assert second.token != first.token
    expiry = await access.redeem_token(second.token, 42, "student", now=later)
    assert expiry == later + timedelta(hours=24)


async def test_same_day_unused_token_is_reused(access):
    first = await access.get_or_create_token(42, "student", now=NOW)
    again = await access.get_or_create_token(42, "student", now=NOW + timedelta(hours=3))
    assert again.token == first.token


async def test_new_day_mints_new_token(access):
    first = await access.get_or_create_token(42, "student", now=NOW)
    tomorrow = await access.get_or_create_token(42, "student", now=NOW + timedelta(days=1))
    assert tomorrow.token != first.token
    assert tomorrow.date == "19102026"


async def test_access_link_uses_deep_link_and_caches(access, shortener, db):
    link = await access.issue_access_link(42, "student", "LibraryTestBot", now=NOW)
    assert link == shortener.short_url

    (long_url, alias), = shortener.calls
    token = long_url.split("?start=", 1)[1]
    assert long_url == f"https://t.me/LibraryTestBot?start={token}"
    assert token.startswith("Token-42-")
    assert alias == token[len("Token-"):]
    assert (await db.get_token(token)).short_link == link

    again = await access.issue_access_link(42, "student", "LibraryTestBot", now=NOW)
    assert again == link
    assert len(shortener.calls) == 1


async def test_shortener_failure_propagates_without_caching(db):
    failing = AccessService(db, StubShortener(error="quota exceeded"), access_hours=24)
    with pytest.raises(ShortenerError):
        await failing.issue_access_link(42, "student", "LibraryTestBot", now=NOW)

    # The token is kept and retried on the next request
    tokens = await db.get_tokens_for_user(42)
    assert len(tokens) == 1
    assert tokens[0].short_link is None
