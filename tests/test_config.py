"""Tests for configuration helpers, the .env template and the healthcheck server."""

from aiohttp import test_utils

from core.config import Config, _get_env_int, parse_admin_ids
from create_env import ENV_TEMPLATE, create_env_file
from run_bot import create_web_app


def test_parse_admin_ids():
    assert parse_admin_ids("1, 2 3,,4") == frozenset({1, 2, 3, 4})
    assert parse_admin_ids("") == frozenset()
    assert parse_admin_ids("7, abc") == frozenset({7})


def test_validate_reads_token(monkeypatch):
    monkeypatch.setattr(Config, "BOT_TOKEN", "")
    monkeypatch.setenv("BOT_TOKEN", "  123:abc  ")
    assert Config.validate()
    assert Config.BOT_TOKEN == "123:abc"

    monkeypatch.setattr(Config, "BOT_TOKEN", "")
    monkeypatch.setenv("BOT_TOKEN", "")
    assert not Config.validate()


def test_ensure_data_directory(monkeypatch, tmp_path):
    db_path = tmp_path / "nested" / "library.db"
    monkeypatch.setattr(Config, "DATABASE_PATH", str(db_path))
    Config.ensure_data_directory()
    assert db_path.parent.is_dir()


def test_create_env_file(tmp_path):
    env_path = tmp_path / ".env"
    assert create_env_file(env_path)
    assert env_path.read_text(encoding="utf-8") == ENV_TEMPLATE

    env_path.write_text("BOT_TOKEN=keep", encoding="utf-8")
    assert not create_env_file(env_path)
    assert env_path.read_text(encoding="utf-8") == "BOT_TOKEN=keep"


async def test_healthcheck():
    async with test_utils.TestClient(test_utils.TestServer(create_web_app())) as client:
        for path in ("/", "/health"):
            resp = await client.get(path)
            assert resp.status == 200
            assert await resp.text() == "OK"


def test_env_int_minimum(monkeypatch):
    monkeypatch.setenv("ITEMS_PER_PAGE", "0")
    assert _get_env_int("ITEMS_PER_PAGE", 5, min_value=1) == 5
    monkeypatch.setenv("ITEMS_PER_PAGE", "-3")
    assert _get_env_int("ITEMS_PER_PAGE", 5, min_value=1) == 5
    monkeypatch.setenv("ITEMS_PER_PAGE", "8")
    assert _get_env_int("ITEMS_PER_PAGE", 5, min_value=1) == 8
    monkeypatch.setenv("ITEMS_PER_PAGE", "many")
    assert _get_env_int("ITEMS_PER_PAGE", 5, min_value=1) == 5
