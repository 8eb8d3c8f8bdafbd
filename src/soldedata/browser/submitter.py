"""Lookup-form submission with button fallback and heuristic post-submit waits.

The portal is observed to use either an explicit submit button or an
implicit form action. Submission itself never raises for page faults: if
nothing works it becomes a no-op and extraction later reports a miss.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from enum import Enum

from playwright.async_api import Error as PlaywrightError, Page

from soldedata.browser.navigation import error_headline
from soldedata.models.strategy import BUTTON_SELECTORS

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]

_FORM_SUBMIT_JS = """
(selector) => {
    const input = document.querySelector(selector);
    if (input && input.form) {
        input.form.submit();
        return true;
    }
    return false;
}
"""


class SubmitMethod(str, Enum):
    """How the lookup form ended up being submitted."""

    BUTTON = "button"
    FORM = "form"
    NONE = "none"


class FormSubmitter:
    """Trigger the lookup form and wait for the result page to settle.

    Args:
        candidates: Ordered submit-control selectors.
        sleep: Awaitable delay taking seconds (``asyncio.sleep`` by default).
    """

    def __init__(
        self,
        candidates: Sequence[str] = BUTTON_SELECTORS,
        *,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.candidates = tuple(candidates)
        self._sleep = sleep

    async def submit(self, page: Page, input_selector: str) -> SubmitMethod:
        """Click the first existing, visible button; else submit the input's form."""
        for selector in self.candidates:
            try:
                button = await page.query_selector(selector)
                if button is None:
                    continue
                # A null layout box means display:none or detached.
                if await button.bounding_box() is None:
                    logger.debug("Button %s exists but is not visible", selector)
                    continue
                await button.click()
            except PlaywrightError as e:
                logger.debug("Button %s could not be used: %s", selector, error_headline(e))
                continue
            logger.info("Button clicked with selector %s", selector)
            return SubmitMethod.BUTTON

        logger.info("No visible submit button, submitting the input's form directly")
        try:
            submitted = await page.evaluate(_FORM_SUBMIT_JS, input_selector)
        except PlaywrightError as e:
            # form.submit() may tear down the execution context mid-evaluate.
            logger.debug("Form submission evaluate raised: %s", error_headline(e))
            submitted = True
        if submitted:
            return SubmitMethod.FORM
        logger.warning("Input %s has no owning form; submission is a no-op", input_selector)
        return SubmitMethod.NONE

    async def submit_and_wait(
        self,
        page: Page,
        input_selector: str,
        *,
        navigation_wait_ms: int = 15_000,
        wait_after_click_ms: int = 3_000,
        settle_delay_ms: int = 2_000,
        on_submitted: Callable[[SubmitMethod], None] | None = None,
    ) -> tuple[SubmitMethod, bool]:
        """Submit, then wait for the result page.

        Waits up to *navigation_wait_ms* for a navigation. If none happens
        the page is assumed to update in place and a fixed
        *wait_after_click_ms* delay is applied instead. A further
        *settle_delay_ms* always follows. Neither wait proves the result is
        rendered; extraction runs regardless.

        *on_submitted*, if given, is called right after the submission and
        before any waiting.

        Returns:
            The submission method and whether a navigation was observed.
        """
        navigated = True
        method = SubmitMethod.NONE
        try:
            async with page.expect_navigation(wait_until="networkidle", timeout=navigation_wait_ms):
                method = await self.submit(page, input_selector)
                if on_submitted is not None:
                    on_submitted(method)
        except PlaywrightError as e:
            logger.debug("Navigation wait ended without navigation: %s", error_headline(e))
            navigated = False

        if navigated:
            logger.info("Navigation to the result page detected")
        else:
            logger.info("No navigation detected, waiting %dms for dynamic content", wait_after_click_ms)
            await self._sleep(wait_after_click_ms / 1000)

        await self._sleep(settle_delay_ms / 1000)
        return method, navigated
