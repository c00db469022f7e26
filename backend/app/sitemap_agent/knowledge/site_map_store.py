"""
Site Map Store

Persists a SiteMap as a single JSON document and keeps the most
recently saved or loaded map in memory. The cache lives on the store
instance; reset it with clear_cache() between independent runs.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from ..models import SiteMap

logger = logging.getLogger(__name__)


class SiteMapStore:
    """File-backed storage for the site map"""

    def __init__(self, file_path: Optional[str] = None):
        if file_path is None:
            from ..config import AgentSettings
            file_path = AgentSettings.from_env().site_map_path
        self.file_path = Path(file_path)
        self._cache: Optional[SiteMap] = None

    def save(self, site_map: SiteMap):
        """Write the map to disk, creating parent directories, and cache it"""
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.file_path, 'w', encoding='utf-8') as f:
            json.dump(site_map.model_dump(mode='json'), f, indent=2, ensure_ascii=False)
        self._cache = site_map
        logger.info(f"[SITEMAP] Saved site map to {self.file_path}")

    def load(self) -> Optional[SiteMap]:
        """Return the cached map, else read it from disk; None if absent or unparsable"""
        if self._cache is not None:
            return self._cache

        if not self.file_path.exists():
            return None

        try:
            with open(self.file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            site_map = SiteMap.model_validate(data)
        except (OSError, ValueError, ValidationError) as e:
            logger.warning(f"[SITEMAP] Could not read site map at {self.file_path}: {e}")
            return None

        self._cache = site_map
        return site_map

    def exists(self) -> bool:
        """Check whether the document exists on disk"""
        return self.file_path.exists()

    def clear_cache(self):
        """Forget the in-memory map"""
        self._cache = None


_default_store: Optional[SiteMapStore] = None


def get_site_map_store() -> SiteMapStore:
    """Get or create the process-wide store"""
    global _default_store
    if _default_store is None:
        _default_store = SiteMapStore()
    return _default_store


def reset_site_map_store():
    """Drop the process-wide store and its cache"""
    global _default_store
    if _default_store is not None:
        _default_store.clear_cache()
    _default_store = None
