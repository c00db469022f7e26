"""
AI Locator

Escalation path for descriptions the heuristic engine cannot resolve.
A size-bounded snapshot of the page markup is sent to the language
model together with the description; the suggested selector and its
alternatives are validated against the live page before use.

Escalation is strictly best-effort: every failure degrades to "no
suggestion" and nothing here raises into the caller.
"""

import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, field_validator

from .ai_gateway import AIGateway, AIRequest
from ..core.locator_engine import LocatorEngine
from ..core.waits import first_visible, wait_for_visible

logger = logging.getLogger(__name__)


HTML_BUDGET_BYTES = 5000
PRIMARY_TIMEOUT = 3000
ALTERNATIVE_TIMEOUT = 1000

SYSTEM_PROMPT = (
    "You are an expert at locating elements on web pages. Given a natural-language "
    "description, propose the most suitable CSS or Playwright selector. Respond in JSON: "
    '{"selector": "selector", "strategy": "strategy", "confidence": 0.0-1.0, '
    '"alternatives": ["alternative 1", "alternative 2"]}'
)

PROMPT_TEMPLATE = """Find the element matching "{description}" in the HTML below.

Requirements:
1. Suggest the most suitable CSS selector or Playwright selector
2. Rate your confidence between 0.0 and 1.0
3. Provide alternative selectors
4. Prefer Playwright semantic selectors (role, text) where possible

HTML:
{html}

Description: {description}

Respond in JSON:
{{
  "selector": "best selector",
  "strategy": "strategy used (e.g. getByRole, CSS selector, getByText)",
  "confidence": 0.85,
  "alternatives": ["alternative selector 1", "alternative selector 2"]
}}
"""


class EscalationOutcome(str, Enum):
    NOT_ATTEMPTED = "not_attempted"  # no credentials configured
    NO_SUGGESTION = "no_suggestion"  # transport or parse failure
    NOT_VALIDATED = "not_validated"  # suggestion never became visible
    VALIDATED = "validated"


class SelectorSuggestion(BaseModel):
    selector: str
    strategy: str = ""
    confidence: float = 0.0
    alternatives: List[str] = []

    @field_validator("strategy", mode="before")
    @classmethod
    def _strategy_or_empty(cls, value):
        return "" if value is None else value

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value):
        try:
            value = float(value)
        except (TypeError, ValueError):
            return 0.0
        return min(max(value, 0.0), 1.0)

    @field_validator("alternatives", mode="before")
    @classmethod
    def _alternatives_or_empty(cls, value):
        return [] if value is None else value


@dataclass
class EscalationResult:
    outcome: EscalationOutcome
    locator: Optional[object] = None
    selector: Optional[str] = None
    suggestion: Optional[SelectorSuggestion] = None
    error: Optional[str] = None


def simplify_html(html: str, max_bytes: int = HTML_BUDGET_BYTES) -> str:
    """Strip scripts, styles and comments, collapse whitespace, cap at max_bytes"""
    simplified = re.sub(r"<script[^>]*>[\s\S]*?</script>", "", html, flags=re.IGNORECASE)
    simplified = re.sub(r"<style[^>]*>[\s\S]*?</style>", "", simplified, flags=re.IGNORECASE)
    simplified = re.sub(r"<!--[\s\S]*?-->", "", simplified)
    simplified = re.sub(r"\s+", " ", simplified).strip()

    encoded = simplified.encode("utf-8")
    if len(encoded) > max_bytes:
        simplified = encoded[:max_bytes].decode("utf-8", errors="ignore") + "..."
    return simplified


def build_prompt(description: str, html: str) -> str:
    return PROMPT_TEMPLATE.format(description=description, html=html)


def parse_suggestion(content: str) -> Optional[SelectorSuggestion]:
    """Extract the JSON suggestion from a model reply, tolerating code fences"""
    if not content:
        return None
    text = re.sub(r"```(?:json)?", "", content).strip()
    start, end = text.find("{"), text.rfind("}")
    if start == -1 or end <= start:
        return None
    try:
        suggestion = SelectorSuggestion.model_validate(json.loads(text[start:end + 1]))
    except ValueError as e:
        logger.debug(f"[AI-LOCATOR] Unparsable suggestion: {e}")
        return None
    if not suggestion.selector.strip():
        return None
    return suggestion


class AILocator:
    """
    Heuristic-first element location with AI escalation.

    Features:
    - Hybrid entry point (engine first, AI on total miss)
    - Bounded page snapshot in every request
    - Live validation of the suggested selector and alternatives
    """

    def __init__(self, page, gateway: Optional[AIGateway] = None, engine: Optional[LocatorEngine] = None,
                 settings=None):
        if gateway is None:
            if settings is None:
                from ..config import AgentSettings
                settings = AgentSettings.from_env()
            gateway = AIGateway.from_settings(settings)
        self.page = page
        self.gateway = gateway
        self.engine = engine or LocatorEngine(page)

    async def escalate(self, description: str) -> EscalationResult:
        """Ask the model for a selector and validate it on the page"""
        if not self.gateway.is_configured:
            logger.warning("[AI-LOCATOR] No API key configured, skipping escalation")
            return EscalationResult(outcome=EscalationOutcome.NOT_ATTEMPTED)

        try:
            html = simplify_html(await self.page.content())
            response = await self.gateway.request(AIRequest(
                request_type="element_find",
                system=SYSTEM_PROMPT,
                prompt=build_prompt(description, html),
                max_tokens=500,
                temperature=0.3
            ))
            if not response.success:
                return EscalationResult(outcome=EscalationOutcome.NO_SUGGESTION, error=response.error)

            suggestion = parse_suggestion(response.content)
            if suggestion is None:
                return EscalationResult(outcome=EscalationOutcome.NO_SUGGESTION, error="Unparsable response")

            candidates = [(suggestion.selector, PRIMARY_TIMEOUT)]
            candidates += [(alt, ALTERNATIVE_TIMEOUT) for alt in suggestion.alternatives if alt]
            for selector, timeout in candidates:
                locator = await self._validate(selector, timeout)
                if locator is not None:
                    logger.info(f"[AI-LOCATOR] '{description}' resolved by suggested selector {selector}")
                    return EscalationResult(
                        outcome=EscalationOutcome.VALIDATED,
                        locator=locator,
                        selector=selector,
                        suggestion=suggestion
                    )

            return EscalationResult(outcome=EscalationOutcome.NOT_VALIDATED, suggestion=suggestion)

        except Exception as e:
            logger.warning(f"[AI-LOCATOR] Escalation failed for '{description}': {e}")
            return EscalationResult(outcome=EscalationOutcome.NO_SUGGESTION, error=str(e))

    async def _validate(self, selector: str, timeout: int):
        try:
            locator = first_visible(self.page.locator(selector))
        except Exception:
            return None
        if await wait_for_visible(locator, timeout):
            return locator
        return None

    async def find_element(self, description: str):
        """AI-only lookup; None unless a suggestion validates"""
        result = await self.escalate(description)
        return result.locator

    async def find_element_hybrid(
        self,
        description: str,
        role: Optional[str] = None,
        name: Optional[str] = None,
        use_ai: bool = True
    ):
        """Heuristic engine first; escalate only when every stage misses"""
        locator = await self.engine.find_element(description, role=role, name=name)
        if locator is not None:
            return locator
        if not use_ai:
            return None
        logger.info(f"[AI-LOCATOR] Heuristics exhausted for '{description}', escalating")
        return await self.find_element(description)
