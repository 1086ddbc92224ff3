"""
Database abstraction layer for the Study Library Bot.

The content directory is a hierarchical key-value store kept in SQLite.
Every leaf value lives in one row keyed by its "/"-joined path
(e.g. "Subjects/Physics/Optics/Notes/1"), so whole subtrees can be read,
replaced or queried by path. All database interactions go through this
layer, making it easy to switch to a hosted realtime store later.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

import aiosqlite

from core.config import Config
from core.models import TokenRecord


def make_path(*segments: Any) -> str:
    """Join path segments, rejecting empty ones and ones containing '/'."""
    parts = []
    for segment in segments:
        text = str(segment)
        if not text or "/" in text:
            raise ValueError(f"Invalid path segment: {segment!r}")
        parts.append(text)
    return "/".join(parts)


def _check_path(path: str) -> str:
    return make_path(*path.split("/"))


def _flatten(path: str, value: Any) -> Iterator[Tuple[str, str]]:
    """Yield (path, json) rows for every leaf under value."""
    if isinstance(value, dict):
        for key, child in value.items():
            yield from _flatten(f"{path}/{make_path(key)}", child)
    elif value is not None:
        yield path, json.dumps(value)


class Database:
    """Database connection and query manager."""

    def __init__(self, db_path: str = None):
        self.db_path = db_path or Config.DATABASE_PATH
        self.conn = None

    async def connect(self):
        """Create database connection and initialize schema."""
        if self.conn is not None:
            return
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = await aiosqlite.connect(self.db_path)
        self.conn.row_factory = aiosqlite.Row
        await self._init_schema()

    async def close(self):
        """Close database connection."""
        if getattr(self, "conn", None) is not None:
            await self.conn.close()
        self.conn = None

    async def _ensure_connection(self):
        """
        Ensure database connection is established and active.

        - Connects if not connected
        - Reconnects if connection is stale/broken
        """
        if getattr(self, "conn", None) is None:
            await self.connect()
            return

        try:
            async with self.conn.execute("SELECT 1") as cursor:
                await cursor.fetchone()
        except Exception:
            try:
                await self.close()
            except Exception:
                self.conn = None
            await self.connect()

    async def _init_schema(self):
        """Initialize database schema."""
        await self.conn.execute("""
            CREATE TABLE IF NOT EXISTS nodes (
                path TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
        """)
        await self.conn.commit()

    # Generic path operations

    async def get(self, path: str) -> Any:
        """
        Read the value stored at path.

        Returns the scalar leaf, a dict rebuilt from the subtree, or None
        when nothing is stored there.
        """
        await self._ensure_connection()
        path = _check_path(path)
        prefix = path + "/"

        async with self.conn.execute(
            "SELECT path, value FROM nodes WHERE path = ? OR substr(path, 1, ?) = ? ORDER BY path",
            (path, len(prefix), prefix),
        ) as cursor:
            rows = await cursor.fetchall()

        if not rows:
            return None

        tree: Dict[str, Any] = {}
        for row in rows:
            if row["path"] == path:
                return json.loads(row["value"])
            keys = row["path"][len(prefix):].split("/")
            node = tree
            for key in keys[:-1]:
                node = node.setdefault(key, {})
            node[keys[-1]] = json.loads(row["value"])
        return tree

    async def set(self, path: str, value: Any):
        """Replace the whole subtree at path with value (None or {} deletes it)."""
        await self._ensure_connection()
        path = _check_path(path)
        try:
            await self._write(path, value)
        except Exception:
            # Drop the partial delete before another write commits it
            await self.conn.rollback()
            raise
        await self.conn.commit()

    async def update(self, path: str, values: Dict[str, Any]):
        """Replace several children of path in one commit, leaving siblings alone."""
        await self._ensure_connection()
        path = _check_path(path)
        try:
            for key, value in values.items():
                await self._write(f"{path}/{make_path(key)}", value)
        except Exception:
            await self.conn.rollback()
            raise
        await self.conn.commit()

    async def compare_and_set(self, path: str, expected: Any, new: Any) -> bool:
        """Atomically replace the leaf at path only if it currently equals expected."""
        await self._ensure_connection()
        cursor = await self.conn.execute(
            "UPDATE nodes SET value = ? WHERE path = ? AND value = ?",
            (json.dumps(new), _check_path(path), json.dumps(expected)),
        )
        await self.conn.commit()
        return cursor.rowcount == 1

    async def query_by_field(self, collection: str, field: str, value: Any) -> Dict[str, Any]:
        """Return the children of collection whose field equals value."""
        await self._ensure_connection()
        prefix = _check_path(collection) + "/"

        async with self.conn.execute(
            "SELECT path FROM nodes WHERE substr(path, 1, ?) = ? AND value = ?",
            (len(prefix), prefix, json.dumps(value)),
        ) as cursor:
            rows = await cursor.fetchall()

        matches = {}
        for row in rows:
            key, _, rest = row["path"][len(prefix):].partition("/")
            if rest == field:
                matches[key] = await self.get(prefix + key)
        return matches

    async def _write(self, path: str, value: Any):
        segments = path.split("/")
        # A scalar ancestor would shadow the new subtree
        for depth in range(1, len(segments)):
            await self.conn.execute(
                "DELETE FROM nodes WHERE path = ?", ("/".join(segments[:depth]),)
            )
        prefix = path + "/"
        await self.conn.execute(
            "DELETE FROM nodes WHERE path = ? OR substr(path, 1, ?) = ?",
            (path, len(prefix), prefix),
        )
        rows = list(_flatten(path, value))
        if rows:
            await self.conn.executemany("INSERT INTO nodes (path, value) VALUES (?, ?)", rows)

    # Content library

    async def get_subjects(self) -> List[str]:
        tree = await self.get("Subjects")
        return sorted(tree) if isinstance(tree, dict) else []

    async def get_chapters(self, subject: str) -> List[str]:
        tree = await self.get(make_path("Subjects", subject))
        return sorted(tree) if isinstance(tree, dict) else []

    async def get_content(self, subject: str, chapter: str, content_type: str) -> Dict[str, str]:
        """Get the label -> locator map of one content type."""
        tree = await self.get(make_path("Subjects", subject, chapter, content_type))
        if not isinstance(tree, dict):
            return {}
        return {label: str(locator) for label, locator in tree.items()}

    async def save_content(self, subject: str, chapter: str, content_type: str,
                           items: Dict[str, str]):
        """Replace (not merge) the label -> locator map of one content type."""
        await self.set(make_path("Subjects", subject, chapter, content_type), dict(items))

    # Users

    async def get_access_expiry(self, user_id: int) -> Optional[datetime]:
        raw = await self.get(make_path("Users", user_id, "access_expiry"))
        if not raw:
            return None
        expiry = datetime.fromisoformat(str(raw))
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=timezone.utc)
        return expiry

    async def set_access(self, user_id: int, username: str, expiry: datetime):
        await self.update(make_path("Users", user_id), {
            "access_expiry": expiry.isoformat(),
            "username": username or "",
        })

    # Tokens

    async def get_token(self, token: str) -> Optional[TokenRecord]:
        """Get token record, None for unknown or malformed token strings."""
        if not token or "/" in token:
            return None
        data = await self.get(make_path("Tokens", token))
        if not isinstance(data, dict):
            return None
        return TokenRecord.from_dict(token, data)

    async def save_token(self, record: TokenRecord):
        await self.set(make_path("Tokens", record.token), record.to_dict())

    async def mark_token_used(self, token: str) -> bool:
        """Flip used false -> true. Returns False if another redemption won."""
        return await self.compare_and_set(make_path("Tokens", token, "used"), False, True)

    async def set_token_short_link(self, token: str, short_link: str):
        await self.set(make_path("Tokens", token, "shortLink"), short_link)

    async def get_tokens_for_user(self, user_id: int) -> List[TokenRecord]:
        matches = await self.query_by_field("Tokens", "userid", str(user_id))
        return [
            TokenRecord.from_dict(token, data)
            for token, data in matches.items()
            if isinstance(data, dict)
        ]
