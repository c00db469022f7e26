"""
Site Map Builder

Builds a SiteMap from the current page's navigation sections and
crawls menu links breadth-first to capture metadata for every
reachable same-origin page.

The section cache and the visited set belong to the builder instance.
Build a new builder for every authenticated role so each starts from
an empty visited set and freshly scanned sections.
"""

import logging
from collections import deque
from typing import Deque, Dict, List, Optional, Sequence, Set, Tuple

from ..config import DEFAULT_CRAWL_DEPTH
from ..core.waits import navigate_and_settle
from ..models import DEFAULT_SECTIONS, MenuNode, PageMetadata, SiteMap, SiteSection
from .feature_detector import FeatureDetector
from .section_scanner import SectionScanner, origin_of, to_absolute

logger = logging.getLogger(__name__)


class SiteMapBuilder:
    """
    Scans navigation sections and crawls menu links.

    Features:
    - First-visible-container section scanning
    - Single-page snapshot via build()
    - Bounded, sequential breadth-first crawl via crawl_menus()
    - Per-page failures are logged and skipped
    """

    def __init__(
        self,
        page,
        sections: Optional[Sequence[SiteSection]] = None,
        max_depth: int = DEFAULT_CRAWL_DEPTH,
        follow_same_origin_only: bool = True,
        scanner: Optional[SectionScanner] = None,
        detector: Optional[FeatureDetector] = None
    ):
        """
        Initialize builder.

        Args:
            page: Playwright page
            sections: Sections to scan (header, sidebar, main by default)
            max_depth: Default crawl depth; root menu nodes are depth 1
            follow_same_origin_only: Skip menu links on other origins
            scanner: Section scanner (created for the page if omitted)
            detector: Feature detector (created for the page if omitted)
        """
        self.page = page
        self.sections = list(sections) if sections else list(DEFAULT_SECTIONS)
        self.max_depth = max_depth
        self.follow_same_origin_only = follow_same_origin_only
        self.scanner = scanner or SectionScanner(page)
        self.detector = detector or FeatureDetector(page)

        self.origin: Optional[str] = None
        self._section_cache: Dict[SiteSection, List[MenuNode]] = {}
        self._visited: Set[str] = set()

    @property
    def visited(self) -> Set[str]:
        return set(self._visited)

    def reset(self):
        """Forget scanned sections and visited paths"""
        self._section_cache.clear()
        self._visited.clear()
        self.origin = None

    async def scan_sections(self) -> Dict[SiteSection, List[MenuNode]]:
        """Scan each requested section once per builder"""
        for section in self.sections:
            if section in self._section_cache:
                continue
            try:
                self._section_cache[section] = await self.scanner.scan(section)
            except Exception as e:
                logger.warning(f"[SITEMAP] Failed to scan {section.value}: {e}")
                self._section_cache[section] = []
        return {section: self._section_cache[section] for section in self.sections}

    async def build(self) -> SiteMap:
        """Snapshot the current page's menus and features; no crawling"""
        if self.origin is None:
            self.origin = origin_of(self.page.url)

        sections = await self.scan_sections()
        current = await self.detector.capture_page()

        site_map = SiteMap(base_url=self.origin, sections=sections, pages=[current])
        total = sum(1 for nodes in sections.values() for root in nodes for _ in root.walk())
        logger.info(f"[SITEMAP] Built map for {self.origin}: {total} menu nodes")
        return site_map

    async def crawl_menus(self, max_depth: Optional[int] = None) -> List[PageMetadata]:
        """
        Visit menu links breadth-first up to max_depth hops.

        Root nodes are depth 1. A node without a path, already visited,
        or on another origin is skipped together with its children.
        A node whose page fails to load still has its children queued.
        """
        max_depth = self.max_depth if max_depth is None else max_depth
        if self.origin is None:
            self.origin = origin_of(self.page.url)

        sections = await self.scan_sections()
        queue: Deque[Tuple[MenuNode, int, SiteSection]] = deque(
            (node, 1, section)
            for section, nodes in sections.items()
            for node in nodes
        )
        pages: List[PageMetadata] = []

        while queue:
            node, depth, section = queue.popleft()
            if depth > max_depth:
                continue
            if node.path is None or node.path in self._visited:
                continue

            url = to_absolute(self.origin, node.path)
            if self.follow_same_origin_only and origin_of(url) != self.origin:
                logger.debug(f"[CRAWL] Skipping cross-origin link {url}")
                continue

            try:
                await navigate_and_settle(self.page, url)
                self._visited.add(node.path)
                metadata = await self.detector.capture_page(section=section)
                node.features = metadata.features
                pages.append(metadata)
                logger.info(f"[CRAWL] Captured {url} (depth {depth}, {len(metadata.features)} features)")
            except Exception as e:
                logger.warning(f"[CRAWL] Failed to capture {url}: {e}")

            if depth + 1 <= max_depth:
                for child in node.children:
                    queue.append((child, depth + 1, section))

        logger.info(f"[CRAWL] Visited {len(pages)} pages (max depth {max_depth})")
        return pages

    async def build_and_crawl(self, max_depth: Optional[int] = None) -> SiteMap:
        """build() followed by crawl_menus(), with crawled pages appended"""
        site_map = await self.build()
        pages = await self.crawl_menus(max_depth)
        added = site_map.add_pages(pages)
        logger.debug(f"[SITEMAP] Added {added} crawled pages")
        return site_map
