"""
Section Scanner

Extracts the menu tree of one structural section (header, sidebar,
footer, main) from the live page. Container selectors are tried in
priority order and the first visible one is used; results from
different candidate selectors are never merged.
"""

import logging
from typing import List, Optional, Set, Tuple
from urllib.parse import urlparse

from ..core.text_variants import slugify
from ..core.waits import PROBE_TIMEOUT, first_visible, wait_for_visible
from ..knowledge.ui_selectors import (
    MENU_FLAT_TRIGGER_SELECTOR,
    MENU_ITEM_SELECTOR,
    MENU_TRIGGER_SELECTOR,
    SECTION_CONTAINER_SELECTORS,
    SUBMENU_SELECTOR,
)
from ..models import MenuNode, SiteSection

logger = logging.getLogger(__name__)

# Number of <li> ancestors, used to pick the outermost list items in a container
LI_DEPTH_SCRIPT = """el => {
    let depth = 0;
    let parent = el.parentElement;
    while (parent) {
        if (parent.tagName === 'LI') depth++;
        parent = parent.parentElement;
    }
    return depth;
}"""


def origin_of(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


def normalize_path(href: Optional[str], origin: Optional[str] = None) -> Optional[str]:
    """
    Reduce an anchor target to a site-relative path.

    Empty, "#" and non-web scheme targets (javascript:, mailto:) are not
    navigable (None). Absolute URLs are reduced to their path, except
    cross-origin ones when an origin is given, which are kept whole so
    the crawler can recognise them.
    """
    if href is None:
        return None
    href = href.strip()
    if not href or href == "#":
        return None
    scheme = urlparse(href).scheme.lower()
    if scheme and scheme not in ("http", "https"):
        return None
    if scheme:
        if origin and origin_of(href) != origin:
            return href
        return urlparse(href).path or "/"
    if not href.startswith("/"):
        return "/" + href
    return href


def to_absolute(origin: str, path: str) -> str:
    if path.startswith("http://") or path.startswith("https://"):
        return path
    return origin.rstrip("/") + path


def make_node_id(section: SiteSection, level: int, index: int, label: str) -> str:
    return slugify(f"{section.value}-{level}-{index}-{label}")


class SectionScanner:
    """Builds MenuNode trees from navigation containers"""

    def __init__(self, page, probe_timeout: int = PROBE_TIMEOUT):
        self.page = page
        self.probe_timeout = probe_timeout

    async def find_container(self, section: SiteSection):
        """First visible container for the section, or None"""
        for selector in SECTION_CONTAINER_SELECTORS.get(section, []):
            container = first_visible(self.page.locator(selector))
            if await wait_for_visible(container, self.probe_timeout):
                logger.debug(f"[SITEMAP] {section.value} container matched '{selector}'")
                return container
        return None

    async def scan(self, section: SiteSection) -> List[MenuNode]:
        """Menu tree for one section; empty when no container is visible"""
        container = await self.find_container(section)
        if container is None:
            logger.debug(f"[SITEMAP] No visible {section.value} container")
            return []

        origin = origin_of(self.page.url) if self.page.url else None
        nodes = await self.extract_nodes(container, section, level=0, origin=origin)
        logger.info(f"[SITEMAP] {section.value}: {len(nodes)} root menu nodes")
        return nodes

    async def extract_nodes(
        self,
        container,
        section: SiteSection,
        level: int = 0,
        origin: Optional[str] = None
    ) -> List[MenuNode]:
        items = await self._top_level_items(container)
        if not items:
            return await self._extract_flat(container, section, level, origin)

        nodes: List[MenuNode] = []
        seen: Set[Tuple[str, Optional[str]]] = set()

        for index, item in enumerate(items):
            try:
                trigger = item.locator(MENU_TRIGGER_SELECTOR).first
                if await trigger.count() == 0:
                    continue
                node = await self._node_from_trigger(trigger, section, level, index, origin)
                if node is None or node.identity in seen:
                    continue

                submenu = item.locator(SUBMENU_SELECTOR).first
                if await submenu.count() > 0 and await submenu.is_visible():
                    node.children = await self.extract_nodes(submenu, section, level + 1, origin)

                seen.add(node.identity)
                nodes.append(node)
            except Exception as e:
                logger.debug(f"[SITEMAP] Skipping {section.value} item {index}: {e}")

        return nodes

    async def _top_level_items(self, container) -> List:
        items = container.locator(MENU_ITEM_SELECTOR)
        count = await items.count()
        if count == 0:
            return []

        located = []
        for i in range(count):
            item = items.nth(i)
            depth = await item.evaluate(LI_DEPTH_SCRIPT)
            located.append((depth, item))

        shallowest = min(depth for depth, _ in located)
        return [item for depth, item in located if depth == shallowest]

    async def _extract_flat(
        self,
        container,
        section: SiteSection,
        level: int,
        origin: Optional[str]
    ) -> List[MenuNode]:
        triggers = container.locator(MENU_FLAT_TRIGGER_SELECTOR)
        count = await triggers.count()

        nodes: List[MenuNode] = []
        seen: Set[Tuple[str, Optional[str]]] = set()
        for index in range(count):
            try:
                node = await self._node_from_trigger(triggers.nth(index), section, level, index, origin)
            except Exception as e:
                logger.debug(f"[SITEMAP] Skipping {section.value} link {index}: {e}")
                continue
            if node is None or node.identity in seen:
                continue
            seen.add(node.identity)
            nodes.append(node)
        return nodes

    async def _node_from_trigger(
        self,
        trigger,
        section: SiteSection,
        level: int,
        index: int,
        origin: Optional[str]
    ) -> Optional[MenuNode]:
        label = (await trigger.inner_text() or "").strip()
        if not label:
            label = (await trigger.get_attribute("aria-label") or "").strip()
        if not label:
            return None

        href = await trigger.get_attribute("href")
        return MenuNode(
            id=make_node_id(section, level, index, label),
            label=label,
            href=href,
            path=normalize_path(href, origin),
            section=section,
            level=level,
        )
