"""Resilient portal navigation with wait-strategy fallback.

The portal keeps long-polling analytics connections open, so ``networkidle``
is not always reached. ``resilient_goto`` tries ``networkidle`` first and
falls back to ``domcontentloaded`` before giving up.
"""

from __future__ import annotations

import logging
from typing import Literal

from playwright.async_api import Error as PlaywrightError, Page, Response

from soldedata.exceptions import NavigationError

logger = logging.getLogger(__name__)

WaitUntil = Literal["commit", "domcontentloaded", "load", "networkidle"]

_FALLBACK_STRATEGY: list[WaitUntil] = ["networkidle", "domcontentloaded"]


async def resilient_goto(
    page: Page,
    url: str,
    *,
    timeout_ms: int = 30_000,
    wait_until: WaitUntil = "networkidle",
) -> Response | None:
    """Navigate to *url* with automatic wait-strategy fallback.

    Tries *wait_until* first (default ``networkidle``). Any Playwright error,
    timeout or otherwise, moves on to the next, looser strategy with the same
    timeout.

    Args:
        page: Playwright page instance.
        url: Target URL to navigate to.
        timeout_ms: Timeout per attempt in milliseconds.
        wait_until: Preferred initial wait strategy.

    Returns:
        The Playwright ``Response`` for the main frame navigation,
        or ``None`` if the page did not produce a response.

    Raises:
        NavigationError: If every strategy in the chain failed.
    """
    strategies = _build_fallback_chain(wait_until)

    last_error: PlaywrightError | None = None
    for strategy in strategies:
        try:
            logger.debug("goto %s (wait_until=%s, timeout=%dms)", url, strategy, timeout_ms)
            return await page.goto(url, wait_until=strategy, timeout=timeout_ms)
        except PlaywrightError as exc:
            logger.warning(
                "Navigation to %s failed with wait_until=%s (%s)",
                url,
                strategy,
                error_headline(exc),
            )
            last_error = exc

    reason = error_headline(last_error) if last_error else "no wait strategy available"
    raise NavigationError(url, reason) from last_error


def _build_fallback_chain(preferred: WaitUntil) -> list[WaitUntil]:
    """Return the fallback chain starting from *preferred*.

    If *preferred* is in the default chain, returns from that point onward.
    Otherwise returns ``[preferred]`` followed by the full default chain.
    """
    if preferred in _FALLBACK_STRATEGY:
        idx = _FALLBACK_STRATEGY.index(preferred)
        return _FALLBACK_STRATEGY[idx:]
    return [preferred, *_FALLBACK_STRATEGY]


def error_headline(exc: BaseException) -> str:
    """Playwright errors append a multi-line call log; keep the headline."""
    text = str(exc).strip()
    return text.splitlines()[0] if text else type(exc).__name__
