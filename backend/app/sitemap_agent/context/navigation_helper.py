"""
Navigation Helper

Read path over a persisted site map: resolves menu label sequences to
page paths, navigates to them, and answers per-page feature queries.
The helper cannot discover structure itself, so a missing map is
fatal at construction.
"""

import logging
import re
from typing import List, Optional, Sequence, Union

from ..core.errors import MenuPathNotFoundError, NavigationFailedError, SiteMapNotFoundError
from ..core.waits import first_visible, navigate_and_settle, wait_for_visible
from ..explorer.section_scanner import to_absolute
from ..knowledge.site_map_store import SiteMapStore, get_site_map_store
from ..models import FeatureKind, MenuNode, SiteMap

logger = logging.getLogger(__name__)

NAVIGATION_CHECK_TIMEOUT = 5000


def _label_matches(label: str, wanted: str) -> bool:
    return label.strip().lower() == wanted.strip().lower()


def _find(nodes: List[MenuNode], labels: Sequence[str]) -> Optional[MenuNode]:
    """Depth-first match with backtracking across same-label siblings"""
    head, rest = labels[0], labels[1:]
    for node in nodes:
        if not _label_matches(node.label, head):
            continue
        if not rest:
            if node.path:
                return node
            continue
        found = _find(node.children, rest)
        if found is not None:
            return found
    return None


class NavigationHelper:
    """Menu-path resolution and navigation over a loaded SiteMap"""

    def __init__(self, page, site_map: SiteMap, base_url: Optional[str] = None):
        self.page = page
        self.site_map = site_map
        self.base_url = base_url or site_map.base_url

    @classmethod
    def create(cls, page, store: Optional[SiteMapStore] = None, base_url: Optional[str] = None) -> "NavigationHelper":
        """Load the persisted map; raises SiteMapNotFoundError if none exists"""
        store = store or get_site_map_store()
        site_map = store.load()
        if site_map is None:
            raise SiteMapNotFoundError(str(store.file_path))
        return cls(page, site_map, base_url=base_url)

    def get_site_map(self) -> SiteMap:
        return self.site_map

    def find_node(self, labels: Sequence[str]) -> Optional[MenuNode]:
        """Node reached by the label sequence that has a path, or None"""
        if not labels:
            return None
        return _find(self.site_map.root_nodes(), list(labels))

    def resolve_menu_path(self, labels: Sequence[str]) -> Optional[str]:
        node = self.find_node(labels)
        return node.path if node else None

    def resolve_menu_path_by_variants(self, variants: Sequence[Sequence[str]]) -> Optional[str]:
        """First label sequence that resolves, tried in order"""
        for labels in variants:
            path = self.resolve_menu_path(labels)
            if path is not None:
                return path
        return None

    async def goto_menu_path(
        self,
        labels: Sequence[str],
        expect_url: Optional[Union[str, re.Pattern]] = None,
        wait_for_selector: Optional[str] = None,
        timeout: int = NAVIGATION_CHECK_TIMEOUT
    ) -> str:
        """
        Navigate to the page behind a menu label sequence.

        expect_url is a URL substring or a compiled regex. Returns the
        URL navigated to.
        """
        path = self.resolve_menu_path(labels)
        if path is None:
            raise MenuPathNotFoundError(labels)
        return await self._goto(path, expect_url, wait_for_selector, timeout)

    async def goto_menu_path_by_variants(
        self,
        variants: Sequence[Sequence[str]],
        expect_url: Optional[Union[str, re.Pattern]] = None,
        wait_for_selector: Optional[str] = None,
        timeout: int = NAVIGATION_CHECK_TIMEOUT
    ) -> str:
        path = self.resolve_menu_path_by_variants(variants)
        if path is None:
            raise MenuPathNotFoundError([" | ".join(labels) for labels in variants])
        return await self._goto(path, expect_url, wait_for_selector, timeout)

    async def _goto(self, path, expect_url, wait_for_selector, timeout) -> str:
        url = to_absolute(self.base_url, path)
        logger.info(f"[NAV] Navigating to {url}")

        try:
            await navigate_and_settle(self.page, url)
        except Exception as e:
            raise NavigationFailedError(f"Could not open {url}", context={"error": str(e)}) from e

        if expect_url is not None:
            def url_matches(current: str) -> bool:
                if isinstance(expect_url, str):
                    return expect_url in current
                return bool(expect_url.search(current))

            try:
                await self.page.wait_for_url(url_matches, timeout=timeout)
            except Exception as e:
                pattern = expect_url if isinstance(expect_url, str) else expect_url.pattern
                raise NavigationFailedError(
                    f"URL did not match {pattern}",
                    context={"url": self.page.url}
                ) from e

        if wait_for_selector:
            locator = first_visible(self.page.locator(wait_for_selector))
            if not await wait_for_visible(locator, timeout):
                raise NavigationFailedError(
                    f"{wait_for_selector} not visible",
                    context={"url": self.page.url}
                )

        return url

    def get_page_features_by_path(self, path: str) -> List[FeatureKind]:
        """Feature kinds of the first captured page whose URL contains path"""
        for page in self.site_map.pages:
            if path in page.url:
                return page.feature_kinds
        return []

    def has_feature(self, path: str, kind: FeatureKind) -> bool:
        return kind in self.get_page_features_by_path(path)
