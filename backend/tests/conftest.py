"""
Pytest configuration and shared fixtures for site map agent tests.
"""

import re
import sys
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional
from unittest.mock import AsyncMock, Mock
from urllib.parse import urlparse

import pytest

# Add backend app to path
sys.path.insert(0, str(Path(__file__).parent.parent / "app"))

from sitemap_agent.core.probes import parse_selector, split_selector_list
from sitemap_agent.knowledge.site_map_store import SiteMapStore
from sitemap_agent.models import (
    FeatureKind,
    MenuNode,
    PageFeature,
    PageMetadata,
    SiteMap,
    SiteSection,
)


# ==================== Fake DOM ====================

IMPLICIT_ROLES = {
    "button": "button",
    "table": "table",
    "nav": "navigation",
    "dialog": "dialog",
}


class FakeElement:
    """Minimal element tree node used by FakePage"""

    def __init__(
        self,
        tag: str,
        text: str = "",
        children=(),
        visible: bool = True,
        enabled: bool = True,
        label: Optional[str] = None,
        on_click: Optional[Callable[[], None]] = None,
        **attrs
    ):
        self.tag = tag
        self.text = text
        self.visible = visible
        self.enabled = enabled
        self.label = label
        self.on_click = on_click
        self.attrs: Dict[str, str] = {}
        for key, value in attrs.items():
            self.attrs[key.rstrip("_").replace("_", "-")] = value
        self.parent: Optional["FakeElement"] = None
        self.children: List["FakeElement"] = []
        for child in children:
            self.append(child)

    def append(self, child: "FakeElement"):
        child.parent = self
        self.children.append(child)

    @property
    def full_text(self) -> str:
        parts = [self.text] + [child.full_text for child in self.children]
        return " ".join(part for part in parts if part).strip()

    @property
    def role(self) -> Optional[str]:
        if "role" in self.attrs:
            return self.attrs["role"]
        if self.tag == "a" and "href" in self.attrs:
            return "link"
        if self.tag == "input":
            input_type = self.attrs.get("type", "text")
            if input_type in ("submit", "button"):
                return "button"
            return "textbox"
        return IMPLICIT_ROLES.get(self.tag)

    @property
    def accessible_name(self) -> str:
        return self.attrs.get("aria-label") or self.label or self.full_text or self.attrs.get("value", "")

    def descendants(self):
        for child in self.children:
            yield child
            yield from child.descendants()

    def is_visible(self) -> bool:
        node = self
        while node is not None:
            if not node.visible:
                return False
            node = node.parent
        return True

    def li_depth(self) -> int:
        depth = 0
        parent = self.parent
        while parent is not None:
            if parent.tag == "li":
                depth += 1
            parent = parent.parent
        return depth

    def __repr__(self):
        return f"<{self.tag} {self.attrs} {self.text!r}>"


def el(tag: str, text: str = "", *children, **kwargs) -> FakeElement:
    """Shorthand element constructor: el("a", "Home", href="/")"""
    return FakeElement(tag, text, children=children, **kwargs)


def _match_steps(element: FakeElement, steps, index: int, scope: FakeElement) -> bool:
    combinator, compound = steps[index]
    if compound.scope:
        return element is scope
    if not compound.matches(element.tag, element.attrs, element.full_text):
        return False
    if index == 0:
        return True
    if combinator == ">":
        return element.parent is not None and _match_steps(element.parent, steps, index - 1, scope)
    ancestor = element.parent
    while ancestor is not None:
        if _match_steps(ancestor, steps, index - 1, scope):
            return True
        ancestor = ancestor.parent
    return False


def query(scope: FakeElement, selector: str) -> List[FakeElement]:
    """All descendants of scope matching a selector list, in document order"""
    parsed = [parse_selector(single) for single in split_selector_list(selector)]
    return [
        element for element in scope.descendants()
        if any(_match_steps(element, steps, len(steps) - 1, scope) for steps in parsed)
    ]


class FakeLocator:
    """Lazy locator over the fake DOM, mirroring the Playwright calls the agent makes"""

    def __init__(self, page: "FakePage", resolver: Callable[[], List[FakeElement]]):
        self.page = page
        self._resolver = resolver

    def elements(self) -> List[FakeElement]:
        return self._resolver()

    def _single(self) -> FakeElement:
        elements = self.elements()
        if not elements:
            raise TimeoutError("Locator resolved to no elements")
        return elements[0]

    # ---- chaining ----

    def locator(self, selector: str) -> "FakeLocator":
        def resolve():
            found: List[FakeElement] = []
            for scope in self.elements():
                for element in query(scope, selector):
                    if element not in found:
                        found.append(element)
            return found
        return FakeLocator(self.page, resolve)

    @property
    def first(self) -> "FakeLocator":
        return self.nth(0)

    def nth(self, index: int) -> "FakeLocator":
        def resolve():
            elements = self.elements()
            return [elements[index]] if index < len(elements) else []
        return FakeLocator(self.page, resolve)

    def filter(self, visible: Optional[bool] = None) -> "FakeLocator":
        def resolve():
            elements = self.elements()
            if visible is None:
                return elements
            return [element for element in elements if element.is_visible() == visible]
        return FakeLocator(self.page, resolve)

    def _filter(self, predicate) -> "FakeLocator":
        def resolve():
            return [
                element
                for scope in self.elements()
                for element in scope.descendants()
                if predicate(element)
            ]
        return FakeLocator(self.page, resolve)

    def get_by_role(self, role: str, name=None, exact: bool = False) -> "FakeLocator":
        def predicate(element: FakeElement) -> bool:
            if element.role != role:
                return False
            if name is None:
                return True
            accessible = element.accessible_name
            if isinstance(name, re.Pattern):
                return bool(name.search(accessible))
            if exact:
                return accessible == name
            return name.lower() in accessible.lower()
        return self._filter(predicate)

    def get_by_text(self, text: str, exact: bool = False) -> "FakeLocator":
        return self._filter(lambda element: bool(element.text) and text.lower() in element.text.lower())

    def get_by_label(self, text: str, exact: bool = False) -> "FakeLocator":
        return self._filter(lambda element: bool(element.label) and text.lower() in element.label.lower())

    # ---- queries ----

    async def count(self) -> int:
        return len(self.elements())

    async def wait_for(self, state: str = "visible", timeout: Optional[int] = None):
        elements = self.elements()
        if state == "visible" and not (elements and elements[0].is_visible()):
            raise TimeoutError(f"Timeout {timeout}ms exceeded waiting for visible")
        if state == "attached" and not elements:
            raise TimeoutError(f"Timeout {timeout}ms exceeded waiting for attached")

    async def is_visible(self) -> bool:
        elements = self.elements()
        return bool(elements) and elements[0].is_visible()

    async def is_enabled(self) -> bool:
        return self._single().enabled

    async def inner_text(self, timeout: Optional[int] = None) -> str:
        return self._single().full_text

    async def text_content(self, timeout: Optional[int] = None) -> str:
        return self._single().full_text

    async def get_attribute(self, name: str, timeout: Optional[int] = None) -> Optional[str]:
        return self._single().attrs.get(name)

    async def evaluate(self, script: str):
        return self._single().li_depth()

    # ---- actions ----

    async def click(self, timeout: Optional[int] = None):
        element = self._single()
        if not element.is_visible():
            raise TimeoutError("Element is not visible")
        self.page.clicked.append(element)
        if element.on_click:
            element.on_click()

    async def fill(self, value: str, timeout: Optional[int] = None):
        element = self._single()
        element.attrs["value"] = value
        self.page.filled.append((element, value))

    async def clear(self, timeout: Optional[int] = None):
        self._single().attrs["value"] = ""


class FakeBrowserContext:
    def __init__(self):
        self.clear_cookies = AsyncMock()


class FakePage:
    """
    In-memory stand-in for a Playwright page.

    Pages are registered per path; goto() swaps the document and
    raises for paths listed in fail_paths.
    """

    def __init__(self, document: Optional[FakeElement] = None, url: str = "https://app.test/", title: str = "App"):
        self.document = document or el("html", "", el("body"))
        self.url = url
        self.doc_title = title
        self.pages: Dict[str, FakeElement] = {}
        self.fail_paths = set()
        self.visits: List[str] = []
        self.clicked: List[FakeElement] = []
        self.filled: List = []
        self.context = FakeBrowserContext()

    def _root(self) -> FakeLocator:
        return FakeLocator(self, lambda: [self.document])

    def locator(self, selector: str) -> FakeLocator:
        return self._root().locator(selector)

    def get_by_role(self, role: str, name=None, exact: bool = False) -> FakeLocator:
        return self._root().get_by_role(role, name=name, exact=exact)

    def get_by_text(self, text: str, exact: bool = False) -> FakeLocator:
        return self._root().get_by_text(text, exact=exact)

    def get_by_label(self, text: str, exact: bool = False) -> FakeLocator:
        return self._root().get_by_label(text, exact=exact)

    async def goto(self, url: str, wait_until: Optional[str] = None, timeout: Optional[int] = None):
        self.visits.append(url)
        path = urlparse(url).path
        if path in self.fail_paths:
            raise Exception(f"net::ERR_CONNECTION_REFUSED at {url}")
        self.url = url
        self.document = self.pages.get(path) or el("html", "", el("body"))

    async def wait_for_load_state(self, state: str = "load", timeout: Optional[int] = None):
        return None

    async def wait_for_url(self, url, timeout: Optional[int] = None):
        matched = url(self.url) if callable(url) else bool(re.search(url, self.url))
        if not matched:
            raise TimeoutError(f"Timeout {timeout}ms exceeded waiting for URL")

    async def title(self) -> str:
        return self.doc_title

    async def content(self) -> str:
        return f"<html><body>{self.document.full_text}</body></html>"

    async def evaluate(self, script: str):
        return 0


@pytest.fixture
def fake_page():
    """A fake page with an empty document at https://app.test/"""
    return FakePage()


@pytest.fixture
def app_document():
    """Header, sidebar and main navigation plus a members table"""
    return el(
        "html", "",
        el(
            "body", "",
            el(
                "header", "",
                el(
                    "nav", "",
                    el(
                        "ul", "",
                        el("li", "", el("a", "Dashboard", href="/dashboard")),
                        el(
                            "li", "",
                            el("a", "More", href="#"),
                            el("ul", "", el("li", "", el("a", "Settings", href="settings")), class_="submenu"),
                        ),
                    ),
                ),
            ),
            el(
                "aside", "",
                el("ul", "", el("li", "", el("a", "Members", href="https://app.test/admin/members"))),
                class_="sidebar",
            ),
            el(
                "main", "",
                el("h1", "Overview"),
                el("a", "Reports", href="/reports"),
                el("button", "", aria_label="Refresh"),
                el("table", "", el("tbody", "", el("tr", "", el("td", "Alice")))),
            ),
        ),
    )


# ==================== Mock Page Fixture ====================

@pytest.fixture
def mock_locator():
    """Create a mock Playwright locator that is visible and enabled."""
    locator = AsyncMock()
    locator.click = AsyncMock()
    locator.fill = AsyncMock()
    locator.clear = AsyncMock()
    locator.wait_for = AsyncMock()
    locator.is_visible = AsyncMock(return_value=True)
    locator.is_enabled = AsyncMock(return_value=True)
    locator.text_content = AsyncMock(return_value="Test Content")
    locator.count = AsyncMock(return_value=1)
    locator.first = locator
    locator.filter = Mock(return_value=locator)
    return locator


@pytest.fixture
def mock_page(mock_locator):
    """Create a mock Playwright page object."""
    page = AsyncMock()

    page.url = "https://example.com/test"

    page.goto = AsyncMock(return_value=None)
    page.wait_for_load_state = AsyncMock(return_value=None)
    page.wait_for_url = AsyncMock(return_value=None)
    page.content = AsyncMock(return_value="<html><body><div id='test'>Test</div></body></html>")
    page.title = AsyncMock(return_value="Test Page")
    page.evaluate = AsyncMock(return_value=0)

    page.locator = Mock(return_value=mock_locator)
    page.get_by_text = Mock(return_value=mock_locator)
    page.get_by_label = Mock(return_value=mock_locator)
    page.get_by_role = Mock(return_value=mock_locator)

    return page


# ==================== Site Map Fixtures ====================

@pytest.fixture
def sample_site_map() -> SiteMap:
    """Sample map with nested sidebar menus and captured pages"""
    return SiteMap(
        base_url="https://app.test",
        captured_at=datetime(2024, 5, 1, 9, 30),
        sections={
            SiteSection.HEADER: [
                MenuNode(id="header-0-0-dashboard", label="Dashboard", path="/dashboard",
                         href="/dashboard", section=SiteSection.HEADER),
            ],
            SiteSection.SIDEBAR: [
                MenuNode(
                    id="sidebar-0-0-회원",
                    label="회원",
                    section=SiteSection.SIDEBAR,
                    children=[
                        MenuNode(id="sidebar-1-0-회원-목록", label="회원 목록", path="/admin/members/list",
                                 section=SiteSection.SIDEBAR, level=1),
                        MenuNode(id="sidebar-1-1-회원-등록", label="회원 등록", path="/admin/members/new",
                                 section=SiteSection.SIDEBAR, level=1),
                    ],
                ),
                MenuNode(
                    id="sidebar-0-1-settings",
                    label="Settings",
                    path="/settings",
                    section=SiteSection.SIDEBAR,
                    children=[
                        MenuNode(id="sidebar-1-0-profile", label="Profile", path="/settings/profile",
                                 section=SiteSection.SIDEBAR, level=1),
                    ],
                ),
            ],
            SiteSection.MAIN: [
                MenuNode(id="main-0-0-members", label="Members", path="/admin/members",
                         section=SiteSection.MAIN),
            ],
        },
        pages=[
            PageMetadata(
                url="https://app.test/admin/members",
                title="Members",
                section=SiteSection.MAIN,
                features=[
                    PageFeature(kind=FeatureKind.TABLE, selector="table", description="Data table"),
                    PageFeature(kind=FeatureKind.SEARCH, selector="input[type='search']"),
                ],
                captured_at=datetime(2024, 5, 1, 9, 31),
            ),
            PageMetadata(
                url="https://app.test/settings",
                title="Settings",
                section=SiteSection.SIDEBAR,
                features=[PageFeature(kind=FeatureKind.FORM, selector="form")],
                captured_at=datetime(2024, 5, 1, 9, 32),
            ),
        ],
    )


@pytest.fixture
def site_map_store(tmp_path) -> SiteMapStore:
    """Store writing into a temporary directory"""
    return SiteMapStore(str(tmp_path / "agent_knowledge" / "site_map.json"))
