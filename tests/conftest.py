"""soldedata test configuration — shared fixtures and async browser doubles."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeout

from soldedata.models.session import SessionConfig


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    """Clear the settings LRU cache between tests."""
    from soldedata.settings.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def session_config() -> SessionConfig:
    """A config with production defaults, small enough for fast fake runs."""
    return SessionConfig(portal_url="http://portal.test/", max_attempts=2, retry_backoff_sec=2.0)


# ---------------------------------------------------------------------------
# Fake Playwright page
# ---------------------------------------------------------------------------


class FakeElement:
    """Minimal stand-in for a Playwright ``ElementHandle``."""

    def __init__(self, selector: str, *, visible: bool = True, on_click=None) -> None:
        self.selector = selector
        self.visible = visible
        self.clicks = 0
        self._on_click = on_click

    async def bounding_box(self) -> dict[str, float] | None:
        if not self.visible:
            return None
        return {"x": 10.0, "y": 10.0, "width": 120.0, "height": 32.0}

    async def click(self, **kwargs: Any) -> None:
        self.clicks += 1
        if self._on_click:
            self._on_click()


class FakeLocator:
    def __init__(self, page: "FakePage", selector: str) -> None:
        self._page = page
        self._selector = selector

    @property
    def first(self) -> "FakeLocator":
        return self

    async def click(self, click_count: int = 1, **kwargs: Any) -> None:
        self._page.actions.append(("click", self._selector, click_count))

    async def press_sequentially(self, text: str, delay: float = 0, **kwargs: Any) -> None:
        self._page.actions.append(("type", self._selector, text, delay))
        self._page.typed[self._selector] = text


class FakePage:
    """Async double covering the slice of the Playwright ``Page`` API the pipeline uses.

    Args:
        inputs: Selectors that resolve as the phone-number input.
        buttons: Mapping of button selector → visible flag.
        has_form: Whether the input belongs to a ``<form>``.
        navigates_on_submit: Whether submission triggers a navigation.
        body: ``innerText`` of the result page.
        elements: ``textContent`` of each ``div, p, span, td, li``.
        attributes: ``textContent`` of each data/balance-tagged element.
        goto_failures: Wait strategies whose ``goto`` raises a timeout.
    """

    def __init__(
        self,
        *,
        inputs: tuple[str, ...] = ('input[type="tel"]',),
        buttons: dict[str, bool] | None = None,
        has_form: bool = True,
        navigates_on_submit: bool = True,
        body: str = "",
        elements: tuple[str, ...] = (),
        attributes: tuple[str, ...] = (),
        goto_failures: tuple[str, ...] = (),
    ) -> None:
        self.inputs = set(inputs)
        self.buttons = {
            sel: FakeElement(sel, visible=vis, on_click=self._mark_submitted)
            for sel, vis in (buttons if buttons is not None else {'button[type="submit"]': True}).items()
        }
        self.has_form = has_form
        self.navigates_on_submit = navigates_on_submit
        self.body = body
        self.elements = elements
        self.attributes = attributes
        self.goto_failures = set(goto_failures)

        self.url = "about:blank"
        self.goto_calls: list[str] = []
        self.waited_selectors: list[str] = []
        self.actions: list[tuple] = []
        self.typed: dict[str, str] = {}
        self.routes: list[tuple[str, Any]] = []
        self.form_submitted = False
        self.submitted = False
        self.screenshots = 0

    def _mark_submitted(self) -> None:
        self.submitted = True

    async def goto(self, url: str, *, wait_until: str = "load", timeout: float = 30_000) -> Any:
        self.goto_calls.append(wait_until)
        if wait_until in self.goto_failures:
            raise PlaywrightTimeout(f"Timeout {timeout}ms exceeded waiting for {wait_until}")
        self.url = url
        return None

    async def route(self, pattern: str, handler: Any) -> None:
        self.routes.append((pattern, handler))

    async def wait_for_selector(self, selector: str, *, state: str = "visible", timeout: float = 30_000) -> Any:
        self.waited_selectors.append(selector)
        if selector in self.inputs:
            return FakeElement(selector)
        raise PlaywrightTimeout(f"Timeout {timeout}ms exceeded waiting for {selector}")

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, selector)

    async def query_selector(self, selector: str) -> FakeElement | None:
        return self.buttons.get(selector)

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        if "form.submit" in script:
            if self.has_form:
                self.form_submitted = True
                self.submitted = True
            return self.has_form
        if isinstance(arg, dict) and "elementSel" in arg:
            return {
                "body": self.body,
                "elements": list(self.elements),
                "attributes": list(self.attributes),
            }
        raise AssertionError(f"unexpected evaluate: {script[:60]}")

    @asynccontextmanager
    async def expect_navigation(self, *, wait_until: str = "load", timeout: float = 30_000):
        yield None
        if not (self.navigates_on_submit and self.submitted):
            raise PlaywrightTimeout(f"Timeout {timeout}ms exceeded waiting for navigation")

    async def screenshot(self, **kwargs: Any) -> bytes:
        self.screenshots += 1
        return b"\x89PNG-fake"


# ---------------------------------------------------------------------------
# Fake Playwright driver
# ---------------------------------------------------------------------------


class _FakeContext:
    def __init__(self, page) -> None:
        self._page = page

    async def new_page(self):
        return self._page


class _FakeBrowser:
    def __init__(self, page) -> None:
        self.page = page
        self.context_kwargs: dict[str, Any] = {}
        self.closed = 0

    async def new_context(self, **kwargs: Any) -> _FakeContext:
        self.context_kwargs = kwargs
        return _FakeContext(self.page)

    async def close(self) -> None:
        self.closed += 1


class _FakeChromium:
    def __init__(self, browser: _FakeBrowser, launch_error: Exception | None) -> None:
        self._browser = browser
        self._launch_error = launch_error
        self.launch_kwargs: dict[str, Any] = {}

    async def launch(self, **kwargs: Any) -> _FakeBrowser:
        self.launch_kwargs = kwargs
        if self._launch_error is not None:
            raise self._launch_error
        return self._browser


class FakePlaywright:
    """Replacement for ``async_playwright()`` wiring a ``FakePage`` into a session."""

    def __init__(self, page, *, launch_error: Exception | None = None) -> None:
        self.browser = _FakeBrowser(page)
        self.chromium = _FakeChromium(self.browser, launch_error)
        self.stopped = 0

    def __call__(self) -> "FakePlaywright":
        return self

    async def start(self) -> "FakePlaywright":
        return self

    async def stop(self) -> None:
        self.stopped += 1


# ---------------------------------------------------------------------------
# Fake browser session
# ---------------------------------------------------------------------------


class FakeSession:
    """Stand-in for ``BrowserSession`` that hands out a prepared ``FakePage``."""

    def __init__(self, page: FakePage, *, acquire_error: BaseException | None = None) -> None:
        self.page = page
        self.acquire_error = acquire_error
        self.acquired = False
        self.releases = 0

    async def __aenter__(self) -> FakePage:
        self.acquired = True
        if self.acquire_error is not None:
            self.releases += 1
            raise self.acquire_error
        return self.page

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.releases += 1

    async def snapshot(self) -> bytes | None:
        return await self.page.screenshot(type="png", full_page=False)


class SessionFactory:
    """Builds one ``FakeSession`` per attempt from a script of pages/errors."""

    def __init__(self, *script: FakePage | BaseException) -> None:
        self.script = list(script)
        self.sessions: list[FakeSession] = []

    def __call__(self, config: SessionConfig) -> FakeSession:
        item = self.script[min(len(self.sessions), len(self.script) - 1)]
        if isinstance(item, BaseException):
            session = FakeSession(FakePage(), acquire_error=item)
        else:
            session = FakeSession(item)
        self.sessions.append(session)
        return session

    @property
    def acquisitions(self) -> int:
        return sum(1 for s in self.sessions if s.acquired)

    @property
    def releases(self) -> int:
        return sum(s.releases for s in self.sessions)


class RecordingSleep:
    """Awaitable replacement for ``asyncio.sleep`` that records delays."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture()
def make_page():
    """Factory for ``FakePage`` instances."""
    return FakePage


@pytest.fixture()
def make_playwright():
    """Factory for ``FakePlaywright`` drivers, passed as ``playwright_factory``."""
    return FakePlaywright


@pytest.fixture()
def make_sessions():
    """Factory for scripted ``SessionFactory`` instances."""
    return SessionFactory


@pytest.fixture()
def fake_sleep() -> RecordingSleep:
    return RecordingSleep()


# ---------------------------------------------------------------------------
# Pytest markers
# ---------------------------------------------------------------------------


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests that require external services or real I/O")
