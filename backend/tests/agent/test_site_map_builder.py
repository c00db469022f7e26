"""
Unit tests for SiteMapBuilder.

Tests section snapshots and the breadth-first menu crawl: depth
bounds, skip rules, failure handling and per-builder visited sets.
"""

import pytest
from pathlib import Path
from unittest.mock import AsyncMock, Mock
import sys

sys.path.insert(0, str(Path(__file__).parent.parent.parent / "app"))

from sitemap_agent.explorer.site_map_builder import SiteMapBuilder
from sitemap_agent.models import FeatureKind, MenuNode, PageFeature, PageMetadata, SiteSection

from conftest import FakePage


def node(label, path=None, section=SiteSection.SIDEBAR, level=0, children=()):
    return MenuNode(
        id=f"{section.value}-{level}-{label.lower()}",
        label=label,
        path=path,
        section=section,
        level=level,
        children=list(children),
    )


class StubScanner:
    """Returns fixed menu trees per section"""

    def __init__(self, sections):
        self.sections = sections
        self.calls = []

    async def scan(self, section):
        self.calls.append(section)
        return self.sections.get(section, [])


class StubDetector:
    """Captures the current URL with optional canned features"""

    def __init__(self, page, features=None):
        self.page = page
        self.features = features or {}

    async def capture_page(self, section=None):
        return PageMetadata(url=self.page.url, section=section, features=self.features.get(self.page.url, []))


def three_level_tree():
    return {
        SiteSection.SIDEBAR: [
            node("A", "/a", children=[
                node("B", "/b", level=1, children=[
                    node("C", "/c", level=2),
                ]),
            ]),
        ],
    }


def make_builder(page, scanned, features=None, **kwargs):
    return SiteMapBuilder(
        page,
        scanner=StubScanner(scanned),
        detector=StubDetector(page, features),
        **kwargs
    )


class TestCrawlDepth:
    """Test the max_depth bound."""

    @pytest.mark.asyncio
    async def test_depth_one_visits_roots_only(self):
        """Test roots are depth 1."""
        page = FakePage()
        builder = make_builder(page, three_level_tree())

        pages = await builder.crawl_menus(max_depth=1)

        assert page.visits == ["https://app.test/a"]
        assert [p.url for p in pages] == ["https://app.test/a"]

    @pytest.mark.asyncio
    async def test_depth_two_visits_children(self):
        """Test one more level is followed at depth 2."""
        page = FakePage()
        builder = make_builder(page, three_level_tree())

        await builder.crawl_menus(max_depth=2)

        assert page.visits == ["https://app.test/a", "https://app.test/b"]

    @pytest.mark.asyncio
    async def test_default_depth_from_constructor(self):
        """Test the constructor depth is used when none is passed."""
        page = FakePage()
        builder = make_builder(page, three_level_tree(), max_depth=3)

        await builder.crawl_menus()

        assert builder.visited == {"/a", "/b", "/c"}

    @pytest.mark.asyncio
    async def test_breadth_first_order(self):
        """Test every root is visited before any child."""
        page = FakePage()
        sections = {
            SiteSection.HEADER: [node("Home", "/home", section=SiteSection.HEADER)],
            SiteSection.SIDEBAR: [
                node("A", "/a", children=[node("A1", "/a1", level=1)]),
                node("B", "/b"),
            ],
        }
        builder = make_builder(page, sections, sections=[SiteSection.HEADER, SiteSection.SIDEBAR])

        await builder.crawl_menus(max_depth=2)

        assert page.visits == [
            "https://app.test/home",
            "https://app.test/a",
            "https://app.test/b",
            "https://app.test/a1",
        ]


class TestCrawlSkipping:
    """Test which nodes are not visited."""

    @pytest.mark.asyncio
    async def test_pathless_node_skipped_with_children(self):
        """Test a non-navigable node's subtree is not followed."""
        page = FakePage()
        sections = {SiteSection.SIDEBAR: [node("More", None, children=[node("Help", "/help", level=1)])]}
        builder = make_builder(page, sections)

        pages = await builder.crawl_menus(max_depth=2)

        assert pages == []
        assert page.visits == []

    @pytest.mark.asyncio
    async def test_cross_origin_skipped(self):
        """Test links to other origins are never loaded."""
        page = FakePage()
        sections = {SiteSection.SIDEBAR: [node("Docs", "https://docs.other.test/"), node("A", "/a")]}
        builder = make_builder(page, sections)

        await builder.crawl_menus()

        assert page.visits == ["https://app.test/a"]

    @pytest.mark.asyncio
    async def test_cross_origin_followed_when_allowed(self):
        """Test the same-origin rule can be switched off."""
        page = FakePage()
        sections = {SiteSection.SIDEBAR: [node("Docs", "https://docs.other.test/")]}
        builder = make_builder(page, sections, follow_same_origin_only=False)

        await builder.crawl_menus()

        assert page.visits == ["https://docs.other.test/"]

    @pytest.mark.asyncio
    async def test_each_path_visited_once(self):
        """Test the same path in two sections is loaded once."""
        page = FakePage()
        sections = {
            SiteSection.HEADER: [node("Members", "/members", section=SiteSection.HEADER)],
            SiteSection.SIDEBAR: [node("Member list", "/members")],
        }
        builder = make_builder(page, sections, sections=[SiteSection.HEADER, SiteSection.SIDEBAR])

        pages = await builder.crawl_menus()

        assert page.visits == ["https://app.test/members"]
        assert len(pages) == 1
        assert pages[0].section == SiteSection.HEADER


class TestCrawlFailures:
    """Test per-page failure handling."""

    @pytest.mark.asyncio
    async def test_failed_page_does_not_stop_crawl(self):
        """Test a load failure is skipped and later nodes still run."""
        page = FakePage()
        page.fail_paths.add("/a")
        sections = {SiteSection.SIDEBAR: [node("A", "/a"), node("B", "/b")]}
        builder = make_builder(page, sections)

        pages = await builder.crawl_menus()

        assert [p.url for p in pages] == ["https://app.test/b"]
        assert "/a" not in builder.visited

    @pytest.mark.asyncio
    async def test_children_of_failed_page_still_queued(self):
        """Test a failing parent does not hide its children."""
        page = FakePage()
        page.fail_paths.add("/a")
        builder = make_builder(page, three_level_tree())

        pages = await builder.crawl_menus(max_depth=2)

        assert [p.url for p in pages] == ["https://app.test/b"]

    @pytest.mark.asyncio
    async def test_scan_failure_yields_empty_section(self):
        """Test a scanner error leaves that section empty."""
        page = FakePage()
        scanner = Mock()
        scanner.scan = AsyncMock(side_effect=Exception("detached"))
        builder = SiteMapBuilder(page, scanner=scanner, detector=StubDetector(page))

        sections = await builder.scan_sections()

        assert sections == {SiteSection.HEADER: [], SiteSection.SIDEBAR: [], SiteSection.MAIN: []}


class TestCrawlState:
    """Test per-builder state."""

    @pytest.mark.asyncio
    async def test_features_attached_to_nodes(self):
        """Test crawled nodes carry the detected features."""
        page = FakePage()
        tree = three_level_tree()
        table = PageFeature(kind=FeatureKind.TABLE, selector="table")
        builder = make_builder(page, tree, features={"https://app.test/a": [table]})

        await builder.crawl_menus(max_depth=1)

        assert tree[SiteSection.SIDEBAR][0].features == [table]

    @pytest.mark.asyncio
    async def test_fresh_builder_has_empty_visited_set(self):
        """Test a second builder revisits pages the first one saw."""
        page = FakePage()
        first = make_builder(page, three_level_tree())
        await first.crawl_menus(max_depth=1)

        second = make_builder(page, three_level_tree())
        await second.crawl_menus(max_depth=1)

        assert page.visits == ["https://app.test/a", "https://app.test/a"]

    @pytest.mark.asyncio
    async def test_sections_scanned_once_per_builder(self):
        """Test the section cache and reset."""
        page = FakePage()
        builder = make_builder(page, three_level_tree())

        await builder.crawl_menus(max_depth=1)
        await builder.crawl_menus(max_depth=1)
        assert builder.scanner.calls == [SiteSection.HEADER, SiteSection.SIDEBAR, SiteSection.MAIN]
        assert page.visits == ["https://app.test/a"]

        builder.reset()
        assert builder.visited == set()
        await builder.crawl_menus(max_depth=1)
        assert len(builder.scanner.calls) == 6


class TestBuild:
    """Test single-page snapshots."""

    @pytest.mark.asyncio
    async def test_build_with_real_scanner(self, app_document):
        """Test build() scans sections and records only the current page."""
        page = FakePage(app_document, url="https://app.test/home")
        builder = SiteMapBuilder(page)

        site_map = await builder.build()

        assert site_map.base_url == "https://app.test"
        assert [n.label for n in site_map.sections[SiteSection.HEADER]] == ["Dashboard", "More"]
        assert [n.label for n in site_map.sections[SiteSection.SIDEBAR]] == ["Members"]
        assert [p.url for p in site_map.pages] == ["https://app.test/home"]
        assert site_map.pages[0].feature_kinds == [FeatureKind.TABLE]
        assert page.visits == []

    @pytest.mark.asyncio
    async def test_build_and_crawl(self):
        """Test crawled pages are appended after the current page."""
        page = FakePage(url="https://app.test/")
        builder = make_builder(page, three_level_tree())

        site_map = await builder.build_and_crawl(max_depth=2)

        assert [p.url for p in site_map.pages] == [
            "https://app.test/",
            "https://app.test/a",
            "https://app.test/b",
        ]
