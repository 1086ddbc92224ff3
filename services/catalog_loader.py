"""
Loader for the predefined subject/chapter catalog.

Admins pick subjects and chapters from this catalog before any content
exists for them in the directory. The catalog is a JSON object mapping
subject names to lists of chapter names (data/catalog.json by default).
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


class CatalogLoader:
    """Loads the subject/chapter catalog from a JSON file."""

    def __init__(self, catalog_file: Optional[str] = None):
        """
        Args:
            catalog_file: Path to the catalog JSON (defaults to data/catalog.json)
        """
        project_root = Path(__file__).parent.parent
        if not catalog_file:
            catalog_file = project_root / "data" / "catalog.json"
        self.catalog_file = Path(catalog_file)
        self._catalog: Dict[str, List[str]] = {}
        self._load_catalog()

    def _load_catalog(self):
        logger.info(f"Loading catalog from: {self.catalog_file.absolute()}")

        if not self.catalog_file.exists():
            logger.error(f"❌ Catalog file {self.catalog_file.absolute()} not found")
            self._catalog = {}
            return

        try:
            with open(self.catalog_file, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except Exception as e:
            logger.error(f"❌ Error loading catalog: {e}", exc_info=True)
            self._catalog = {}
            return

        if not isinstance(raw, dict):
            logger.error("❌ Catalog must be a JSON object of subject -> chapters")
            self._catalog = {}
            return

        catalog = {}
        for subject, chapters in raw.items():
            if not isinstance(chapters, list):
                logger.warning(f"Skipping subject {subject!r}: chapters must be a list")
                continue
            catalog[str(subject)] = [str(chapter) for chapter in chapters]
        self._catalog = catalog
        logger.info(f"✅ Loaded {len(self._catalog)} subjects from catalog")

    def reload(self):
        """Reload the catalog from disk."""
        self._load_catalog()

    def get_subjects(self) -> List[str]:
        return list(self._catalog)

    def get_chapters(self, subject: str) -> List[str]:
        return list(self._catalog.get(subject, []))
