"""Configuration loader for soldedata using Pydantic settings.

Config precedence (highest wins):
  1. CLI flags / per-request options (where applicable)
  2. Environment variables (SOLDE_* with __ for nesting)
  3. settings.local.toml
  4. settings.{env}.toml
  5. settings.default.toml
"""

from __future__ import annotations

import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

_THIS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = Path(os.getenv("SOLDE_PROJECT_ROOT", _THIS_DIR.parents[2]))
CONFIG_DIR = PROJECT_ROOT / "config"

ENV_VAR_NAME = "SOLDE_ENV"
DEFAULT_ENV = "local"

DESKTOP_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

# Chromium flags for running inside containers (no setuid sandbox, no GPU,
# small /dev/shm).
CONTAINER_LAUNCH_ARGS: list[str] = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
    "--hide-scrollbars",
    "--mute-audio",
]


def _resolve_env() -> str:
    return (os.getenv(ENV_VAR_NAME) or DEFAULT_ENV).strip()


def _load_toml(path: Path) -> dict[str, Any]:
    if path.is_file():
        with open(path, "rb") as f:
            return tomllib.load(f)
    return {}


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class BrowserSettings(BaseSettings):
    """Playwright browser settings."""

    model_config = SettingsConfigDict(env_prefix="SOLDE_BROWSER__")

    headless: bool = True
    executable_path: str = ""
    viewport_width: int = 1280
    viewport_height: int = 800
    user_agent: str = DESKTOP_USER_AGENT
    blocked_resource_types: list[str] = Field(
        default_factory=lambda: ["image", "stylesheet", "font", "media"]
    )
    launch_args: list[str] = Field(default_factory=lambda: list(CONTAINER_LAUNCH_ARGS))


class ScraperSettings(BaseSettings):
    """Portal location, timeouts and retry policy for the extraction pipeline."""

    model_config = SettingsConfigDict(env_prefix="SOLDE_SCRAPER__")

    portal_url: str = "http://moninternet.mtn.ci/"
    timeout_ms: int = 30_000
    wait_after_click_ms: int = 3_000
    retries: int = Field(2, ge=1)
    retry_backoff_sec: float = 2.0
    selector_timeout_ms: int = 5_000
    navigation_wait_ms: int = 15_000
    settle_delay_ms: int = 2_000
    pre_submit_delay_ms: int = 500
    type_delay_ms: int = 100
    page_preview_chars: int = 1_000
    include_screenshot: bool = True


class APISettings(BaseSettings):
    """API server configuration."""

    model_config = SettingsConfigDict(env_prefix="SOLDE_API__")

    host: str = "0.0.0.0"
    port: int = 3003
    cors_origins: list[str] = ["*"]


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    """Root soldedata settings with nested sections."""

    model_config = SettingsConfigDict(
        env_prefix="SOLDE_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    env: str = Field(default_factory=_resolve_env)
    project_root: Path = Field(default=PROJECT_ROOT)
    debug: bool = False
    log_level: str = "INFO"

    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    scraper: ScraperSettings = Field(default_factory=ScraperSettings)
    api: APISettings = Field(default_factory=APISettings)

    @model_validator(mode="before")
    @classmethod
    def _merge_toml_files(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Layer TOML config files before env var overrides."""
        defaults = _load_toml(CONFIG_DIR / "settings.default.toml")
        env_name = (values.get("env") or os.getenv(ENV_VAR_NAME) or DEFAULT_ENV).strip()
        env_overrides = _load_toml(CONFIG_DIR / f"settings.{env_name}.toml")
        local_overrides = _load_toml(CONFIG_DIR / "settings.local.toml")

        # Merge: defaults < env-specific < local < explicit values
        merged: dict[str, Any] = {}
        for layer in (defaults, env_overrides, local_overrides, values):
            for key, val in layer.items():
                if isinstance(val, dict) and isinstance(merged.get(key), dict):
                    merged[key] = {**merged[key], **val}
                else:
                    merged[key] = val
        return merged


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the singleton settings instance (cached)."""
    return Settings()
