"""
Locator Engine

Resolves a natural-language element description ("login button",
"email field") into a visible element on the live page.

Resolution runs an ordered list of stages. Each stage yields probes,
and each probe waits at most PROBE_TIMEOUT for a visible match. The
first visible match wins; later stages are never consulted. A miss
is returned as None, never raised.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from .probes import (
    AttributeProbe,
    LabelProbe,
    Probe,
    RoleProbe,
    SelectorProbe,
    TextProbe,
)
from .text_variants import generate_text_variants, slugify, structural_selectors
from .waits import PROBE_TIMEOUT, wait_for_visible

logger = logging.getLogger(__name__)


@dataclass
class LocatorOptions:
    """Hints for a single resolution"""
    role: Optional[str] = None
    name: Optional[str] = None
    exact: bool = False
    timeout: int = PROBE_TIMEOUT


@dataclass
class LocatorMatch:
    """A resolved element and the stage that produced it"""
    locator: object
    stage: str
    probe: str


@dataclass
class LocatorCandidate:
    """A pre-gathered element scored during best-match disambiguation"""
    locator: object
    index: int
    score: int = 0
    visible: bool = False
    text: str = ""


def _role_stage(description: str, options: LocatorOptions) -> List[Probe]:
    if not options.role:
        return []
    name = options.name or re.compile(re.escape(description), re.IGNORECASE)
    return [RoleProbe(role=options.role, name=name, exact=options.exact)]


def _text_stage(description: str, options: LocatorOptions) -> List[Probe]:
    return [TextProbe(text=variant) for variant in generate_text_variants(description)]


def _label_stage(description: str, options: LocatorOptions) -> List[Probe]:
    return [LabelProbe(text=variant) for variant in generate_text_variants(description)]


def _placeholder_stage(description: str, options: LocatorOptions) -> List[Probe]:
    return [AttributeProbe(attributes=["placeholder"], value=description, stage="placeholder")]


def _name_stage(description: str, options: LocatorOptions) -> List[Probe]:
    return [AttributeProbe(attributes=["name"], value=description, stage="name")]


def _id_stage(description: str, options: LocatorOptions) -> List[Probe]:
    return [AttributeProbe(
        attributes=["id"],
        value=description,
        exact_value=slugify(description),
        stage="id"
    )]


def _title_stage(description: str, options: LocatorOptions) -> List[Probe]:
    return [AttributeProbe(attributes=["title", "aria-label"], value=description, stage="title")]


def _structural_stage(description: str, options: LocatorOptions) -> List[Probe]:
    return [SelectorProbe(selector=selector) for selector in structural_selectors(description)]


StageBuilder = Callable[[str, LocatorOptions], List[Probe]]

# Order matters: the first stage with a visible match wins
STAGES: List[Tuple[str, StageBuilder]] = [
    ("role", _role_stage),
    ("text", _text_stage),
    ("label", _label_stage),
    ("placeholder", _placeholder_stage),
    ("name", _name_stage),
    ("id", _id_stage),
    ("title", _title_stage),
    ("structural", _structural_stage),
]


def build_probes(description: str, options: Optional[LocatorOptions] = None) -> List[Probe]:
    """Flatten every stage into the ordered probe list for a description"""
    options = options or LocatorOptions()
    probes: List[Probe] = []
    for _stage_name, builder in STAGES:
        for probe in builder(description, options):
            probe.timeout = options.timeout
            probes.append(probe)
    return probes


class LocatorEngine:
    """
    Heuristic element resolution against a Playwright page.

    Features:
    - Ordered, short-circuiting stage pipeline
    - Bilingual text variants for text and label stages
    - Best-match scoring across pre-gathered candidates
    """

    def __init__(self, page, probe_timeout: int = PROBE_TIMEOUT):
        self.page = page
        self.probe_timeout = probe_timeout
        self._stats: Dict[str, int] = {"resolved": 0, "missed": 0}

    async def resolve(
        self,
        description: str,
        options: Optional[LocatorOptions] = None
    ) -> Optional[LocatorMatch]:
        """Run the pipeline and report which stage matched"""
        options = options or LocatorOptions(timeout=self.probe_timeout)

        for probe in build_probes(description, options):
            locator = await probe.resolve(self.page)
            if locator is not None:
                self._stats["resolved"] += 1
                logger.info(f"[LOCATOR] '{description}' resolved by {probe.describe()}")
                return LocatorMatch(locator=locator, stage=probe.stage, probe=probe.describe())
            logger.debug(f"[LOCATOR] '{description}' missed {probe.describe()}")

        self._stats["missed"] += 1
        logger.debug(f"[LOCATOR] '{description}' not resolved by any stage")
        return None

    async def find_element(
        self,
        description: str,
        role: Optional[str] = None,
        name: Optional[str] = None,
        exact: bool = False,
        timeout: Optional[int] = None
    ):
        """Return a visible locator for the description, or None"""
        options = LocatorOptions(
            role=role,
            name=name,
            exact=exact,
            timeout=timeout or self.probe_timeout
        )
        match = await self.resolve(description, options)
        return match.locator if match else None

    async def find_best_match(self, description: str, candidates: List):
        """
        Pick the most plausible element among pre-gathered candidates.

        Invisible candidates are disqualified. Enabled scores 10, disabled 5,
        plus 5 when the description contains the first five characters of
        the candidate's own text. Ties keep the original order. If no
        candidate is visible the first one is returned.
        """
        if not candidates:
            return None
        if len(candidates) == 1:
            return candidates[0]

        scored: List[LocatorCandidate] = []
        lowered = description.lower()

        for index, locator in enumerate(candidates):
            candidate = LocatorCandidate(locator=locator, index=index)
            if not await wait_for_visible(locator, self.probe_timeout):
                continue
            candidate.visible = True
            try:
                candidate.score += 10 if await locator.is_enabled() else 5
                candidate.text = (await locator.text_content() or "").strip()
            except Exception as e:
                logger.debug(f"[LOCATOR] Candidate {index} could not be scored: {e}")
                continue
            if candidate.text and candidate.text.lower()[:5] in lowered:
                candidate.score += 5
            scored.append(candidate)

        if not scored:
            return candidates[0]

        scored.sort(key=lambda c: c.score, reverse=True)
        best = scored[0]
        logger.debug(f"[LOCATOR] Best match for '{description}' is candidate {best.index} (score {best.score})")
        return best.locator

    def get_stats(self) -> Dict[str, int]:
        return dict(self._stats)
