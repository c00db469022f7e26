"""
Locator Probes

A probe is one way of looking for an element: by accessibility role,
by visible text, by associated label, by attribute substring, or by a
raw structural selector. Every probe can run against a live page
(resolve) or against recorded element snapshots (matches), so the
resolution order can be replayed without a browser.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .waits import PROBE_TIMEOUT, first_visible, wait_for_visible
from .text_variants import css_string

logger = logging.getLogger(__name__)


class ProbeKind(str, Enum):
    ROLE = "role"
    TEXT = "text"
    LABEL = "label"
    ATTRIBUTE = "attribute"
    STRUCTURAL = "structural"


# ==================== Selector parsing ====================

_COMPOUND_TOKEN = re.compile(r"""
      (?P<tag>^(?:[a-zA-Z][\w-]*|\*))
    | \.(?P<cls>[\w-]+)
    | \#(?P<id>[\w-]+)
    | \[\s*(?P<attr>[\w-]+)\s*
        (?:(?P<op>[*^$]?=)\s*
            (?:"(?P<dq>(?:[^"\\]|\\.)*)"|'(?P<sq>[^']*)'|(?P<bare>[^\]\s]+))
            (?P<flag>\s+i)?\s*
        )?\]
    | :has-text\(\s*(?:"(?P<htd>(?:[^"\\]|\\.)*)"|'(?P<hts>[^']*)')\s*\)
    | (?P<scope>:scope)
""", re.VERBOSE)


@dataclass
class AttributeCondition:
    name: str
    op: Optional[str] = None  # None means "attribute present"
    value: str = ""
    ignore_case: bool = False

    def test(self, attributes: Dict[str, str]) -> bool:
        actual = attributes.get(self.name)
        if actual is None:
            return False
        if self.op is None:
            return True
        expected = self.value
        if self.ignore_case:
            actual, expected = actual.lower(), expected.lower()
        if self.op == "=":
            return actual == expected
        if self.op == "*=":
            return expected in actual
        if self.op == "^=":
            return actual.startswith(expected)
        if self.op == "$=":
            return actual.endswith(expected)
        return False


@dataclass
class SelectorCompound:
    """One compound selector such as button.primary[type="submit"]"""
    tag: Optional[str] = None
    classes: List[str] = field(default_factory=list)
    element_id: Optional[str] = None
    attributes: List[AttributeCondition] = field(default_factory=list)
    has_text: Optional[str] = None
    scope: bool = False

    def matches(self, tag: str, attributes: Dict[str, str], text: str = "") -> bool:
        if self.scope:
            return False
        if self.tag and self.tag != "*" and self.tag.lower() != tag.lower():
            return False
        own_classes = attributes.get("class", "").split()
        if any(cls not in own_classes for cls in self.classes):
            return False
        if self.element_id is not None and attributes.get("id") != self.element_id:
            return False
        if not all(condition.test(attributes) for condition in self.attributes):
            return False
        if self.has_text is not None and self.has_text.lower() not in (text or "").lower():
            return False
        return True


def _unescape(value: str) -> str:
    return value.replace('\\"', '"').replace("\\\\", "\\")


def _split_outside(text: str, separators: str) -> List[str]:
    """Split on separator characters that are not inside quotes, brackets or parens"""
    parts = []
    current = []
    depth = 0
    quote = None
    i = 0
    while i < len(text):
        char = text[i]
        if quote:
            current.append(char)
            if char == "\\" and i + 1 < len(text):
                current.append(text[i + 1])
                i += 1
            elif char == quote:
                quote = None
        elif char in "\"'":
            quote = char
            current.append(char)
        elif char in "[(":
            depth += 1
            current.append(char)
        elif char in "])":
            depth -= 1
            current.append(char)
        elif char in separators and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
        i += 1
    parts.append("".join(current))
    return [part.strip() for part in parts if part.strip()]


def split_selector_list(selector: str) -> List[str]:
    """Split a comma-separated selector list"""
    return _split_outside(selector, ",")


def parse_compound(text: str) -> SelectorCompound:
    """Parse a single compound selector; raises ValueError if unsupported"""
    compound = SelectorCompound()
    pos = 0
    while pos < len(text):
        match = _COMPOUND_TOKEN.match(text, pos)
        if not match or match.end() == pos:
            raise ValueError(f"Unsupported selector: {text}")
        groups = match.groupdict()
        if groups["tag"]:
            compound.tag = groups["tag"]
        elif groups["cls"]:
            compound.classes.append(groups["cls"])
        elif groups["id"]:
            compound.element_id = groups["id"]
        elif groups["attr"]:
            value = groups["dq"] if groups["dq"] is not None else (groups["sq"] or groups["bare"] or "")
            compound.attributes.append(AttributeCondition(
                name=groups["attr"],
                op=groups["op"],
                value=_unescape(value),
                ignore_case=bool(groups["flag"]),
            ))
        elif groups["htd"] is not None or groups["hts"] is not None:
            compound.has_text = _unescape(groups["htd"]) if groups["htd"] is not None else groups["hts"]
        elif groups["scope"]:
            compound.scope = True
        pos = match.end()
    return compound


def parse_selector(selector: str) -> List[Tuple[str, SelectorCompound]]:
    """
    Parse one complex selector into (combinator, compound) steps.

    The first step's combinator is "". Combinators are " " (descendant)
    and ">" (child).
    """
    steps: List[Tuple[str, SelectorCompound]] = []
    combinator = ""
    for token in _split_outside(selector.replace(">", " > "), " "):
        if token == ">":
            combinator = ">"
            continue
        steps.append((combinator, parse_compound(token)))
        combinator = " "
    return steps


# ==================== Element snapshots ====================

@dataclass
class ElementSnapshot:
    """Recorded facts about one element, enough to replay probe matching"""
    tag: str
    text: str = ""
    role: Optional[str] = None
    label: Optional[str] = None
    attributes: Dict[str, str] = field(default_factory=dict)
    visible: bool = True
    enabled: bool = True

    @property
    def accessible_name(self) -> str:
        return self.attributes.get("aria-label") or self.label or self.text

    def matches_selector(self, selector: str) -> bool:
        """Match the rightmost compound of each selector in the list"""
        for single in split_selector_list(selector):
            steps = parse_selector(single)
            if steps and steps[-1][1].matches(self.tag, self.attributes, self.text):
                return True
        return False


# ==================== Probes ====================

class Probe:
    """Base probe. Subclasses build a Playwright locator and a snapshot predicate."""

    kind: ProbeKind
    stage: str
    timeout: int = PROBE_TIMEOUT

    def locate(self, page):
        raise NotImplementedError

    def matches(self, element: ElementSnapshot) -> bool:
        raise NotImplementedError

    async def resolve(self, page):
        """Return the first visible match, or None on a miss or probe error"""
        try:
            locator = first_visible(self.locate(page))
        except Exception as e:
            logger.debug(f"[LOCATOR] {self.describe()} could not be built: {e}")
            return None
        if await wait_for_visible(locator, self.timeout):
            return locator
        return None

    def describe(self) -> str:
        return f"{self.stage}:{self.kind.value}"


@dataclass
class RoleProbe(Probe):
    role: str
    name: Union[str, re.Pattern]
    exact: bool = False
    stage: str = "role"
    timeout: int = PROBE_TIMEOUT
    kind: ProbeKind = ProbeKind.ROLE

    def locate(self, page):
        if isinstance(self.name, str):
            return page.get_by_role(self.role, name=self.name, exact=self.exact)
        return page.get_by_role(self.role, name=self.name)

    def matches(self, element: ElementSnapshot) -> bool:
        if not element.visible or element.role != self.role:
            return False
        name = element.accessible_name
        if not isinstance(self.name, str):
            return bool(self.name.search(name))
        if self.exact:
            return name.strip() == self.name
        return self.name.lower() in name.lower()

    def describe(self) -> str:
        return f"role={self.role}"


@dataclass
class TextProbe(Probe):
    text: str
    stage: str = "text"
    timeout: int = PROBE_TIMEOUT
    kind: ProbeKind = ProbeKind.TEXT

    def locate(self, page):
        return page.get_by_text(self.text)

    def matches(self, element: ElementSnapshot) -> bool:
        return element.visible and self.text.lower() in element.text.lower()

    def describe(self) -> str:
        return f"text={self.text!r}"


@dataclass
class LabelProbe(Probe):
    text: str
    stage: str = "label"
    timeout: int = PROBE_TIMEOUT
    kind: ProbeKind = ProbeKind.LABEL

    def locate(self, page):
        return page.get_by_label(self.text)

    def matches(self, element: ElementSnapshot) -> bool:
        return element.visible and bool(element.label) and self.text.lower() in element.label.lower()

    def describe(self) -> str:
        return f"label={self.text!r}"


@dataclass
class AttributeProbe(Probe):
    """Case-insensitive substring match on one or more attributes"""
    attributes: Sequence[str]
    value: str
    exact_value: Optional[str] = None
    stage: str = "attribute"
    timeout: int = PROBE_TIMEOUT
    kind: ProbeKind = ProbeKind.ATTRIBUTE

    @property
    def selector(self) -> str:
        parts = []
        if self.exact_value:
            parts.extend(f"[{attr}={css_string(self.exact_value)}]" for attr in self.attributes)
        parts.extend(f"[{attr}*={css_string(self.value)} i]" for attr in self.attributes)
        return ", ".join(parts)

    def locate(self, page):
        return page.locator(self.selector)

    def matches(self, element: ElementSnapshot) -> bool:
        if not element.visible:
            return False
        for attr in self.attributes:
            actual = element.attributes.get(attr)
            if actual is None:
                continue
            if self.exact_value and actual == self.exact_value:
                return True
            if self.value.lower() in actual.lower():
                return True
        return False

    def describe(self) -> str:
        return f"{self.stage}={self.selector}"


@dataclass
class SelectorProbe(Probe):
    """Raw selector, used for keyword-triggered structural templates"""
    selector: str
    stage: str = "structural"
    timeout: int = PROBE_TIMEOUT
    kind: ProbeKind = ProbeKind.STRUCTURAL

    def locate(self, page):
        return page.locator(self.selector)

    def matches(self, element: ElementSnapshot) -> bool:
        try:
            return element.visible and element.matches_selector(self.selector)
        except ValueError:
            return False

    def describe(self) -> str:
        return f"selector={self.selector}"


def replay(
    probes: Iterable[Probe],
    elements: Sequence[ElementSnapshot]
) -> Optional[Tuple[Probe, ElementSnapshot]]:
    """Run probes in order against recorded elements; first probe with a match wins"""
    for probe in probes:
        for element in elements:
            if probe.matches(element):
                return probe, element
    return None
