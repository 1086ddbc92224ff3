"""
Content service for the subject/chapter/content-type library.

Handles listing the hierarchy, validating admin input that binds item
labels to message locators, and resolving labels back to locators.
"""

import logging
from typing import Dict, List, Optional

from core.database import Database
from core.models import ContentType, Locator
from services.catalog_loader import CatalogLoader

logger = logging.getLogger(__name__)


class IdPairsError(ValueError):
    """Admin input contained an invalid label,locator pair."""

    def __init__(self, pair: str, reason: str):
        super().__init__(f"{pair!r}: {reason}")
        self.pair = pair
        self.reason = reason


def _natural_key(label: str):
    return (0, int(label), label) if label.isdecimal() else (1, 0, label)


def parse_id_pairs(text: str) -> Dict[str, str]:
    """
    Parse "1,12345;2,67890" (or "1,7/12345" for topic messages) into a map.

    The whole input is validated before anything is returned; the first
    bad pair raises IdPairsError.
    """
    items: Dict[str, str] = {}
    for raw_pair in (text or "").split(";"):
        pair = raw_pair.strip()
        if not pair:
            continue
        label, sep, raw_locator = pair.partition(",")
        label = label.strip()
        raw_locator = raw_locator.strip()
        if not sep or not label or not raw_locator:
            raise IdPairsError(pair, "expected <number>,<message id>")
        if not label.isdecimal():
            raise IdPairsError(pair, "number must be an integer")
        try:
            locator = Locator.parse(raw_locator)
        except ValueError as e:
            raise IdPairsError(pair, str(e)) from None
        if label in items:
            raise IdPairsError(pair, f"number {label} is listed twice")
        items[label] = str(locator)

    if not items:
        raise IdPairsError(text or "", "no pairs found")
    return items


class ContentService:
    """Service for content library operations."""

    def __init__(self, db: Database, catalog: Optional[CatalogLoader] = None):
        self.db = db
        self.catalog = catalog

    async def list_subjects(self, include_catalog: bool = False) -> List[str]:
        subjects = set(await self.db.get_subjects())
        if include_catalog and self.catalog:
            subjects.update(self.catalog.get_subjects())
        return sorted(subjects)

    async def list_chapters(self, subject: str, include_catalog: bool = False) -> List[str]:
        chapters = set(await self.db.get_chapters(subject))
        if include_catalog and self.catalog:
            chapters.update(self.catalog.get_chapters(subject))
        return sorted(chapters)

    async def list_items(self, subject: str, chapter: str, content_type: ContentType) -> List[str]:
        content = await self.db.get_content(subject, chapter, content_type.value)
        return sorted(content, key=_natural_key)

    async def save_items(self, subject: str, chapter: str, content_type: ContentType,
                         text: str) -> Dict[str, str]:
        """
        Validate admin input and replace the stored map.

        Raises IdPairsError before any write when the input is invalid.
        """
        items = parse_id_pairs(text)
        await self.db.save_content(subject, chapter, content_type.value, items)
        logger.info(f"💾 Saved {len(items)} items to {subject}/{chapter}/{content_type.value}")
        return items

    async def resolve_locator(self, subject: str, chapter: str, content_type: ContentType,
                              label: str) -> Optional[Locator]:
        """Look up the locator of one item, None if missing or unreadable."""
        content = await self.db.get_content(subject, chapter, content_type.value)
        raw = content.get(label)
        if raw is None:
            return None
        try:
            return Locator.parse(raw)
        except ValueError:
            logger.warning(f"Stored locator {raw!r} for {subject}/{chapter}/{content_type.value}/{label} is invalid")
            return None
