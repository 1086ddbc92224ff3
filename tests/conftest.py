"""Pytest configuration and fixtures."""

import pytest

from bots.library_bot import LibraryBot
from core.config import Config
from core.database import Database
from services.catalog_loader import CatalogLoader
from helpers import ADMIN_ID, SOURCE_CHAT_ID, FakeBot, StubShortener


@pytest.fixture(autouse=True)
def _default_config(monkeypatch):
    """Pin settings that tests rely on, whatever the local .env says."""
    monkeypatch.setattr(Config, "ADMIN_CHAT_ID", 0)
    monkeypatch.setattr(Config, "ACCESS_DURATION_HOURS", 24)
    monkeypatch.setattr(Config, "ITEMS_PER_PAGE", 5)
    monkeypatch.setattr(Config, "BOT_USERNAME", "")


@pytest.fixture
async def db(tmp_path):
    """Fresh SQLite content directory per test."""
    database = Database(str(tmp_path / "library.db"))
    await database.connect()
    yield database
    await database.close()


@pytest.fixture
def fake_bot() -> FakeBot:
    return FakeBot()


@pytest.fixture
def shortener() -> StubShortener:
    return StubShortener()


@pytest.fixture
def empty_catalog(tmp_path) -> CatalogLoader:
    return CatalogLoader(str(tmp_path / "no_catalog.json"))


@pytest.fixture
def library_bot(db, fake_bot, shortener, empty_catalog) -> LibraryBot:
    return LibraryBot(
        bot=fake_bot,
        db=db,
        shortener=shortener,
        admin_ids=frozenset({ADMIN_ID}),
        source_chat_id=SOURCE_CHAT_ID,
        catalog=empty_catalog,
    )
