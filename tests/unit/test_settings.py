"""Unit tests for soldedata settings.

Covers default loading, TOML layering, env var overrides and the
per-request ``SessionConfig`` built on top of them.
"""

from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from soldedata.models.session import ScrapeOptions, SessionConfig


class TestSettings:
    """Core settings loading and override mechanics."""

    def test_default_settings_load(self, monkeypatch):
        monkeypatch.delenv("SOLDE_ENV", raising=False)
        from soldedata.settings import get_settings

        s = get_settings()
        assert s.env == "local"
        assert s.scraper.portal_url == "http://moninternet.mtn.ci/"
        assert s.scraper.timeout_ms == 30_000
        assert s.scraper.wait_after_click_ms == 3_000
        assert s.scraper.retries == 2
        assert s.api.port == 3003

    def test_browser_defaults(self):
        from soldedata.settings.config import Settings

        s = Settings()
        assert s.browser.headless is True
        assert (s.browser.viewport_width, s.browser.viewport_height) == (1280, 800)
        assert "Chrome/" in s.browser.user_agent
        assert "--no-sandbox" in s.browser.launch_args
        assert s.browser.executable_path == ""

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("SOLDE_SCRAPER__RETRIES", "5")
        from soldedata.settings.config import Settings

        assert Settings().scraper.retries == 5

    def test_executable_path_from_env(self, monkeypatch):
        monkeypatch.setenv("SOLDE_BROWSER__EXECUTABLE_PATH", "/usr/bin/chromium")
        from soldedata.settings.config import Settings

        s = Settings()
        assert s.browser.executable_path == "/usr/bin/chromium"
        assert SessionConfig.from_settings(s).executable_path == "/usr/bin/chromium"

    def test_multiple_section_overrides(self, monkeypatch):
        monkeypatch.setenv("SOLDE_API__PORT", "9999")
        monkeypatch.setenv("SOLDE_SCRAPER__PORTAL_URL", "http://localhost:8080/")
        monkeypatch.setenv("SOLDE_LOG_LEVEL", "DEBUG")
        from soldedata.settings.config import Settings

        s = Settings()
        assert s.api.port == 9999
        assert s.scraper.portal_url == "http://localhost:8080/"
        assert s.log_level == "DEBUG"

    def test_get_settings_is_cached(self):
        from soldedata.settings import get_settings

        assert get_settings() is get_settings()

    def test_retries_must_be_positive(self):
        from soldedata.settings.config import Settings

        with pytest.raises(ValidationError):
            Settings(scraper={"retries": 0})


class TestSessionConfig:
    def test_defaults_come_from_settings(self):
        from soldedata.settings.config import Settings

        config = SessionConfig.from_settings(Settings())
        assert config.portal_url == "http://moninternet.mtn.ci/"
        assert config.navigation_timeout_ms == 30_000
        assert config.wait_after_click_ms == 3_000
        assert config.max_attempts == 2
        assert config.retry_backoff_sec == 2.0
        assert config.executable_path is None
        assert config.blocked_resource_types == frozenset({"image", "stylesheet", "font", "media"})

    def test_options_override_settings(self):
        from soldedata.settings.config import Settings

        options = ScrapeOptions(timeout=45_000, waitAfterClick=0, retries=4)
        config = SessionConfig.from_settings(Settings(), options)
        assert config.navigation_timeout_ms == 45_000
        assert config.wait_after_click_ms == 0
        assert config.max_attempts == 4

    def test_config_is_frozen(self):
        from soldedata.settings.config import Settings

        config = SessionConfig.from_settings(Settings())
        with pytest.raises(ValidationError):
            config.max_attempts = 9

    @pytest.mark.parametrize("retries", [0, 11])
    def test_option_bounds(self, retries):
        with pytest.raises(ValidationError):
            ScrapeOptions(retries=retries)


class TestLogging:
    def test_local_env_uses_plain_text(self, monkeypatch):
        monkeypatch.delenv("SOLDE_ENV", raising=False)
        from soldedata.log_config import configure_logging

        configure_logging("warning")
        assert logging.getLogger("asyncio").level == logging.WARNING

    def test_json_formatter_carries_data(self):
        import json

        from soldedata.log_config import _JsonFormatter

        record = logging.LogRecord("soldedata.pipeline", logging.INFO, __file__, 1, "Form submitted", None, None)
        record.data = {"method": "button"}
        entry = json.loads(_JsonFormatter().format(record))
        assert entry["severity"] == "INFO"
        assert entry["message"] == "Form submitted"
        assert entry["data"] == {"method": "button"}


class TestCollectProblems:
    def test_defaults_have_no_problems(self):
        from soldedata.cli.settings_cmd import collect_problems
        from soldedata.settings.config import Settings

        assert collect_problems(Settings()) == []

    def test_existing_binary_is_accepted(self, tmp_path):
        from soldedata.cli.settings_cmd import collect_problems
        from soldedata.settings.config import Settings

        binary = tmp_path / "chromium"
        binary.write_bytes(b"")
        assert collect_problems(Settings(browser={"executable_path": str(binary)})) == []

    def test_non_positive_timeout(self):
        from soldedata.cli.settings_cmd import collect_problems
        from soldedata.settings.config import Settings

        problems = collect_problems(Settings(scraper={"timeout_ms": 0}))
        assert problems == ["scraper.timeout_ms must be positive"]
