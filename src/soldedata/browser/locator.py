"""Phone-number input resolution by ordered selector fallback.

The portal's markup is observed, not guaranteed, so the input is found by
trying a fixed list of selectors in decreasing order of confidence.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

from playwright.async_api import Error as PlaywrightError, ElementHandle, Page

from soldedata.browser.navigation import error_headline
from soldedata.exceptions import ElementNotFound
from soldedata.models.strategy import INPUT_SELECTORS

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


async def first_match(
    candidates: Sequence[T],
    probe: Callable[[T], Awaitable[R | None]],
) -> tuple[int, T, R] | None:
    """Return ``(index, candidate, result)`` for the first candidate whose probe hits.

    Candidates are probed strictly in order and nothing is probed after the
    first non-``None`` result. A probe signals a miss by returning ``None``.
    """
    for index, candidate in enumerate(candidates):
        result = await probe(candidate)
        if result is not None:
            return index, candidate, result
    return None


@dataclass(frozen=True)
class LocatedElement:
    """An input resolved on the page, with the selector that found it."""

    handle: ElementHandle
    selector: str
    index: int


class ElementLocator:
    """Resolve and populate the phone-number input.

    Args:
        candidates: Ordered input selectors; the first that resolves wins.
        timeout_ms: How long to wait for each individual selector.
    """

    def __init__(
        self,
        candidates: Sequence[str] = INPUT_SELECTORS,
        *,
        timeout_ms: int = 5_000,
    ) -> None:
        self.candidates = tuple(candidates)
        self.timeout_ms = timeout_ms

    async def locate(self, page: Page, timeout_ms: int | None = None) -> LocatedElement:
        """Return the first candidate input present on *page*.

        Raises:
            ElementNotFound: If no candidate appeared within its timeout.
        """
        per_selector = timeout_ms if timeout_ms is not None else self.timeout_ms

        async def probe(selector: str) -> Any:
            try:
                return await page.wait_for_selector(selector, state="attached", timeout=per_selector)
            except PlaywrightError as e:
                logger.debug("Input selector %s did not resolve: %s", selector, error_headline(e))
                return None

        hit = await first_match(self.candidates, probe)
        if hit is None:
            raise ElementNotFound(self.candidates)

        index, selector, handle = hit
        logger.info("Input found with selector %s (candidate %d/%d)", selector, index + 1, len(self.candidates))
        return LocatedElement(handle=handle, selector=selector, index=index)

    async def fill(self, page: Page, selector: str, phone_number: str, *, delay_ms: int = 100) -> None:
        """Select the input's current content, then type *phone_number* key by key.

        The portal's own script listens to keystroke events, so the value is
        typed with a fixed per-character delay rather than assigned.
        """
        locator = page.locator(selector).first
        await locator.click(click_count=3)
        await locator.press_sequentially(phone_number, delay=delay_ms)
        logger.info("Phone number typed into %s", selector)
