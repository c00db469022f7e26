"""
Feature Detector

Probes the current page for a fixed catalog of UI feature kinds.
Each probe is independent and visibility-gated; a missing feature
is simply absent from the result.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from ..core.waits import PROBE_TIMEOUT, first_visible, wait_for_visible
from ..knowledge.ui_selectors import COMMON_SELECTORS, FEATURE_PROBES
from ..models import FeatureKind, PageFeature, PageMetadata, SiteSection

logger = logging.getLogger(__name__)


class FeatureDetector:
    """Captures PageMetadata for whatever page is currently loaded"""

    def __init__(
        self,
        page,
        probes: Sequence[Tuple[str, FeatureKind, str]] = FEATURE_PROBES,
        probe_timeout: int = PROBE_TIMEOUT
    ):
        self.page = page
        self.probes = list(probes)
        self.probe_timeout = probe_timeout

    async def detect(self) -> List[PageFeature]:
        features: List[PageFeature] = []
        for selector, kind, description in self.probes:
            locator = first_visible(self.page.locator(selector))
            if await wait_for_visible(locator, self.probe_timeout):
                features.append(PageFeature(kind=kind, selector=selector, description=description))
        logger.debug(f"[SITEMAP] {self.page.url}: features {[f.kind.value for f in features]}")
        return features

    async def page_title(self) -> Optional[str]:
        """First heading text, else the document title"""
        try:
            heading = self.page.locator(COMMON_SELECTORS["page_title"]).first
            text = await heading.text_content(timeout=self.probe_timeout)
            if text and text.strip():
                return text.strip()
        except Exception:
            pass

        try:
            title = await self.page.title()
        except Exception:
            return None
        return (title or "").strip() or None

    async def capture_page(self, section: Optional[SiteSection] = None) -> PageMetadata:
        return PageMetadata(
            url=self.page.url,
            title=await self.page_title(),
            section=section,
            features=await self.detect(),
        )
