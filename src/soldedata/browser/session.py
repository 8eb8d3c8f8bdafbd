"""Browser session lifecycle: one Chromium process and one page per attempt.

``BrowserSession`` is an async context manager. Entering it launches the
browser, prepares the page (viewport, desktop user agent, resource filter)
and loads the portal; leaving it closes the browser process. A failure while
entering releases everything acquired so far before the error propagates,
so every acquisition is matched by exactly one release.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from playwright.async_api import Error as PlaywrightError, Page, Route, async_playwright

from soldedata.browser.navigation import resilient_goto
from soldedata.exceptions import LaunchError
from soldedata.models.session import SessionConfig

logger = logging.getLogger(__name__)


class BrowserSession:
    """Owns one browser process and one page for the lifetime of an attempt.

    Args:
        config: Read-only configuration for the current request.
        playwright_factory: Callable returning a Playwright context manager
            (``async_playwright`` by default; tests inject a fake).
    """

    def __init__(
        self,
        config: SessionConfig,
        *,
        playwright_factory: Callable[[], Any] = async_playwright,
    ) -> None:
        self._config = config
        self._playwright_factory = playwright_factory
        self._playwright: Any = None
        self._browser: Any = None
        self._page: Page | None = None
        self._released = False

    @property
    def page(self) -> Page | None:
        return self._page

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def acquire(self) -> Page:
        """Launch the browser, prepare a page and load the portal.

        Raises:
            LaunchError: If the browser process cannot be started.
            NavigationError: If the portal could not be loaded with any wait strategy.
        """
        try:
            await self._launch()
            self._page = await self._new_page()
            logger.info("Navigating to %s", self._config.portal_url)
            await resilient_goto(
                self._page,
                self._config.portal_url,
                timeout_ms=self._config.navigation_timeout_ms,
            )
        except BaseException:
            await self.release()
            raise
        logger.info("Portal loaded: %s", self._page.url)
        return self._page

    async def release(self) -> None:
        """Close the browser process. Safe to call more than once."""
        if self._released:
            return
        self._released = True
        try:
            if self._browser is not None:
                await self._browser.close()
        except Exception as e:
            logger.warning("Browser close error (non-fatal): %s", e)
        finally:
            self._browser = None
            self._page = None
            if self._playwright is not None:
                try:
                    await self._playwright.stop()
                except Exception as e:
                    logger.warning("Playwright stop error (non-fatal): %s", e)
                self._playwright = None
        logger.debug("Browser released")

    async def __aenter__(self) -> Page:
        return await self.acquire()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.release()

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    async def snapshot(self) -> bytes | None:
        """Capture a PNG of the visible viewport, or ``None`` if it cannot be taken."""
        if self._page is None:
            return None
        try:
            return await self._page.screenshot(type="png", full_page=False)
        except PlaywrightError as e:
            logger.warning("Failed to capture diagnostic snapshot: %s", e)
            return None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _launch_args(self) -> dict[str, Any]:
        """Build ``chromium.launch`` keyword arguments from the session config."""
        args: dict[str, Any] = {
            "headless": self._config.headless,
            "args": list(self._config.launch_args),
            "chromium_sandbox": False,
        }
        if self._config.executable_path:
            args["executable_path"] = self._config.executable_path
        return args

    async def _launch(self) -> None:
        try:
            self._playwright = await self._playwright_factory().start()
            self._browser = await self._playwright.chromium.launch(**self._launch_args())
        except (PlaywrightError, OSError) as exc:
            raise LaunchError(f"Browser launch failed: {exc}") from exc
        logger.info("Browser started (headless=%s)", self._config.headless)

    async def _new_page(self) -> Page:
        context = await self._browser.new_context(
            viewport={
                "width": self._config.viewport_width,
                "height": self._config.viewport_height,
            },
            user_agent=self._config.user_agent or None,
        )
        page = await context.new_page()
        if self._config.blocked_resource_types:
            await page.route("**/*", self._filter_request)
        return page

    async def _filter_request(self, route: Route) -> None:
        """Abort heavy static resources; everything else goes through untouched."""
        if route.request.resource_type in self._config.blocked_resource_types:
            await route.abort()
        else:
            await route.continue_()
