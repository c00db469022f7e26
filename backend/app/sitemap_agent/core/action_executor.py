"""
Action Executor

Locator-driven page actions. Every action takes a natural-language
description, resolves it through the locator engine (or the hybrid
AI locator when one is supplied), and only raises once all retries
and fallbacks are exhausted.
"""

import asyncio
import logging
from typing import Dict, List, Optional

from .errors import LocatorNotFoundError
from .locator_engine import LocatorEngine
from .waits import first_visible, wait_for_visible
from ..knowledge.ui_selectors import COMMON_SELECTORS

logger = logging.getLogger(__name__)


SUBMIT_CAPTIONS = ["제출", "Submit", "Save", "저장", "확인", "생성", "Create"]

MODAL_CAPTIONS: Dict[str, List[str]] = {
    "confirm": ["확인", "Confirm", "Yes", "예", "OK", "Delete", "삭제"],
    "cancel": ["취소", "Cancel", "No", "아니오"],
}


class SafeActionExecutor:
    """
    Executes click/fill style actions by description.

    Features:
    - Bounded retries with a fixed delay
    - Hybrid heuristic + AI resolution when an AI locator is supplied
    - Form filling, form submission and modal handling
    """

    # Timeouts in milliseconds
    DEFAULT_TIMEOUT = 5000
    MODAL_TIMEOUT = 5000
    DEFAULT_RETRIES = 3
    DEFAULT_RETRY_DELAY = 1000
    FORM_FIELD_PAUSE = 300

    def __init__(
        self,
        page,
        engine: Optional[LocatorEngine] = None,
        ai_locator=None,
        retries: int = DEFAULT_RETRIES,
        retry_delay_ms: int = DEFAULT_RETRY_DELAY,
        timeout: int = DEFAULT_TIMEOUT
    ):
        """
        Initialize executor.

        Args:
            page: Playwright page
            engine: Heuristic locator engine (created for the page if omitted)
            ai_locator: Optional AILocator; enables hybrid resolution
            retries: Attempts per action before giving up
            retry_delay_ms: Fixed pause between attempts
            timeout: Timeout for the click/fill itself
        """
        self.page = page
        self.engine = engine or LocatorEngine(page)
        self.ai_locator = ai_locator
        self.retries = retries
        self.retry_delay_ms = retry_delay_ms
        self.timeout = timeout

    async def _resolve(self, description: str, role: Optional[str] = None, name: Optional[str] = None):
        if self.ai_locator is not None:
            return await self.ai_locator.find_element_hybrid(description, role=role, name=name)
        return await self.engine.find_element(description, role=role, name=name)

    async def _with_retries(self, description: str, action: str, act, retries: Optional[int] = None,
                            role: Optional[str] = None, name: Optional[str] = None):
        attempts = retries or self.retries

        for attempt in range(1, attempts + 1):
            locator = await self._resolve(description, role=role, name=name)
            if locator is not None:
                try:
                    await act(locator)
                    logger.info(f"[ACTION] {action} '{description}' succeeded on attempt {attempt}")
                    return
                except Exception as e:
                    logger.warning(f"[ACTION] {action} '{description}' failed on attempt {attempt}: {e}")
            else:
                logger.debug(f"[ACTION] '{description}' not found on attempt {attempt}/{attempts}")

            if attempt < attempts:
                await asyncio.sleep(self.retry_delay_ms / 1000)

        raise LocatorNotFoundError(description, context={"action": action, "attempts": attempts})

    async def safe_click(
        self,
        description: str,
        role: Optional[str] = None,
        name: Optional[str] = None,
        retries: Optional[int] = None
    ):
        """Resolve and click; raises LocatorNotFoundError after all attempts fail"""
        async def act(locator):
            await locator.click(timeout=self.timeout)

        await self._with_retries(description, "click", act, retries=retries, role=role, name=name)

    async def safe_fill(
        self,
        description: str,
        value: str,
        clear_first: bool = True,
        retries: Optional[int] = None
    ):
        """Resolve and fill, clearing the field first unless told otherwise"""
        async def act(locator):
            if clear_first:
                await locator.clear(timeout=self.timeout)
            await locator.fill(value, timeout=self.timeout)

        await self._with_retries(description, "fill", act, retries=retries)

    async def element_exists(self, description: str, role: Optional[str] = None) -> bool:
        """True if the description resolves to a visible element; never raises"""
        try:
            locator = await self._resolve(description, role=role)
            return locator is not None and await locator.is_visible()
        except Exception as e:
            logger.debug(f"[ACTION] Existence check for '{description}' failed: {e}")
            return False

    async def fill_form(self, fields: Dict[str, str]):
        """Fill fields in order; the first failure is logged and re-raised"""
        for description, value in fields.items():
            try:
                await self.safe_fill(description, value)
            except Exception as e:
                logger.error(f"[ACTION] Form fill stopped at '{description}': {e}")
                raise
            await asyncio.sleep(self.FORM_FIELD_PAUSE / 1000)

    async def submit_form(self, button_text: Optional[str] = None):
        """
        Click a submit button.

        Tries the given caption, then common submit captions as buttons,
        then any submit-typed button or input.
        """
        captions = ([button_text] if button_text else []) + SUBMIT_CAPTIONS

        for caption in captions:
            try:
                await self.safe_click(caption, role="button", retries=1)
                return
            except LocatorNotFoundError:
                continue

        fallback = first_visible(self.page.locator(COMMON_SELECTORS["submit_button"]))
        if await wait_for_visible(fallback):
            await fallback.click(timeout=self.timeout)
            logger.info("[ACTION] Submitted form via submit-typed control")
            return

        raise LocatorNotFoundError(button_text or "submit button", context={"tried": captions})

    async def handle_modal(self, action: str = "confirm", description: Optional[str] = None):
        """Confirm or cancel the open modal dialog"""
        if action not in MODAL_CAPTIONS:
            raise ValueError(f"Unknown modal action: {action}")

        modal = first_visible(self.page.locator(COMMON_SELECTORS["modal"]))
        if not await wait_for_visible(modal, self.MODAL_TIMEOUT):
            raise LocatorNotFoundError("modal dialog", context={"action": action})

        if description:
            try:
                await self.safe_click(description, role="button", retries=1)
                return
            except LocatorNotFoundError:
                logger.debug(f"[ACTION] Modal button '{description}' not found, trying defaults")

        for caption in MODAL_CAPTIONS[action]:
            button = first_visible(modal.get_by_role("button", name=caption))
            if await wait_for_visible(button):
                await button.click(timeout=self.timeout)
                logger.info(f"[ACTION] Modal {action} via '{caption}'")
                return

        raise LocatorNotFoundError(f"{action} button in modal", context={"tried": MODAL_CAPTIONS[action]})
