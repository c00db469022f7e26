from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime
from enum import Enum


class SiteSection(str, Enum):
    """Structural section a navigation block was found in"""
    HEADER = "header"
    SIDEBAR = "sidebar"
    FOOTER = "footer"
    MAIN = "main"


class FeatureKind(str, Enum):
    """Coarse classification of an on-page widget"""
    FORM = "form"
    TABLE = "table"
    LIST = "list"
    MODAL = "modal"
    CARD = "card"
    CHART = "chart"
    STATS = "stats"
    FILTER = "filter"
    SEARCH = "search"
    BUTTON_GROUP = "button-group"


DEFAULT_SECTIONS = [SiteSection.HEADER, SiteSection.SIDEBAR, SiteSection.MAIN]


class PageFeature(BaseModel):
    kind: FeatureKind
    selector: str
    description: Optional[str] = None


class MenuNode(BaseModel):
    id: str
    label: str
    href: Optional[str] = None
    path: Optional[str] = None  # None means not navigable
    section: SiteSection
    level: int = 0
    children: List["MenuNode"] = []
    features: List[PageFeature] = []

    @property
    def identity(self):
        return (self.label, self.path)

    def walk(self):
        """Yield this node and all descendants depth-first"""
        yield self
        for child in self.children:
            yield from child.walk()


class PageMetadata(BaseModel):
    url: str
    title: Optional[str] = None
    section: Optional[SiteSection] = None
    features: List[PageFeature] = []
    captured_at: datetime = Field(default_factory=datetime.now)

    @property
    def feature_kinds(self) -> List[FeatureKind]:
        return [feature.kind for feature in self.features]


class SiteMap(BaseModel):
    base_url: str
    captured_at: datetime = Field(default_factory=datetime.now)
    sections: Dict[SiteSection, List[MenuNode]] = {}
    pages: List[PageMetadata] = []

    def root_nodes(self) -> List[MenuNode]:
        """All root nodes across sections, in section order"""
        nodes: List[MenuNode] = []
        for section_nodes in self.sections.values():
            nodes.extend(section_nodes or [])
        return nodes

    def add_pages(self, pages: List[PageMetadata]) -> int:
        """Append pages whose url is not already present; returns count added"""
        known = {page.url for page in self.pages}
        added = 0
        for page in pages:
            if page.url not in known:
                self.pages.append(page)
                known.add(page.url)
                added += 1
        return added


MenuNode.model_rebuild()


def merge_site_maps(target: SiteMap, source: SiteMap) -> SiteMap:
    """
    Union two maps captured under different roles.

    Root nodes are unioned per section by (label, path), pages by url.
    The target's base_url is kept; captured_at comes from the source.
    """
    merged = SiteMap(
        base_url=target.base_url,
        captured_at=source.captured_at,
        sections={section: list(nodes) for section, nodes in target.sections.items()},
        pages=list(target.pages),
    )

    for section, nodes in source.sections.items():
        combined = merged.sections.setdefault(section, [])
        seen = {node.identity for node in combined}
        for node in nodes or []:
            if node.identity not in seen:
                combined.append(node)
                seen.add(node.identity)

    merged.add_pages(source.pages)
    return merged
