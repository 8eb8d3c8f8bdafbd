"""Per-request configuration models."""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field

from soldedata.settings.config import Settings

# Inbound numbers are digits only once whitespace is stripped.
PHONE_PATTERN = re.compile(r"^[0-9]{8,15}$")


def clean_phone_number(raw: str | int) -> str:
    """Strip all whitespace from *raw*."""
    return re.sub(r"\s", "", str(raw))


def is_valid_phone_number(number: str) -> bool:
    return bool(PHONE_PATTERN.match(number))


class ScrapeOptions(BaseModel):
    """Caller-supplied overrides for a single extraction request.

    Unset fields fall back to the ``scraper`` settings section.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    timeout: int | None = Field(None, gt=0, description="Navigation timeout in milliseconds.")
    wait_after_click: int | None = Field(
        None,
        ge=0,
        alias="waitAfterClick",
        description="Fallback delay (ms) when submission triggers no navigation.",
    )
    retries: int | None = Field(None, ge=1, le=10, description="Maximum number of attempts.")


class SessionConfig(BaseModel):
    """Read-only configuration for one extraction request.

    Built once per request; every attempt of that request shares it.
    """

    model_config = ConfigDict(frozen=True)

    portal_url: str
    navigation_timeout_ms: int = 30_000
    wait_after_click_ms: int = 3_000
    navigation_wait_ms: int = 15_000
    settle_delay_ms: int = 2_000
    pre_submit_delay_ms: int = 500
    selector_timeout_ms: int = 5_000
    type_delay_ms: int = 100
    max_attempts: int = Field(2, ge=1)
    retry_backoff_sec: float = 2.0
    page_preview_chars: int = 1_000
    include_screenshot: bool = True

    headless: bool = True
    executable_path: str | None = None
    viewport_width: int = 1280
    viewport_height: int = 800
    user_agent: str = ""
    blocked_resource_types: frozenset[str] = frozenset({"image", "stylesheet", "font", "media"})
    launch_args: tuple[str, ...] = ()

    @classmethod
    def from_settings(cls, settings: Settings, options: ScrapeOptions | None = None) -> "SessionConfig":
        """Combine resolved settings with per-request *options*."""
        options = options or ScrapeOptions()
        scraper = settings.scraper
        browser = settings.browser
        return cls(
            portal_url=scraper.portal_url,
            navigation_timeout_ms=options.timeout or scraper.timeout_ms,
            wait_after_click_ms=(
                options.wait_after_click if options.wait_after_click is not None else scraper.wait_after_click_ms
            ),
            navigation_wait_ms=scraper.navigation_wait_ms,
            settle_delay_ms=scraper.settle_delay_ms,
            pre_submit_delay_ms=scraper.pre_submit_delay_ms,
            selector_timeout_ms=scraper.selector_timeout_ms,
            type_delay_ms=scraper.type_delay_ms,
            max_attempts=options.retries or scraper.retries,
            retry_backoff_sec=scraper.retry_backoff_sec,
            page_preview_chars=scraper.page_preview_chars,
            include_screenshot=scraper.include_screenshot,
            headless=browser.headless,
            executable_path=browser.executable_path or None,
            viewport_width=browser.viewport_width,
            viewport_height=browser.viewport_height,
            user_agent=browser.user_agent,
            blocked_resource_types=frozenset(browser.blocked_resource_types),
            launch_args=tuple(browser.launch_args),
        )
