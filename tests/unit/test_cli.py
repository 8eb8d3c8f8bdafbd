"""Unit tests for the soldedata CLI."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from unittest.mock import patch

from typer.testing import CliRunner

from soldedata.cli.app import app
from soldedata.models.results import AttemptResult

runner = CliRunner()

TS = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _success(**overrides) -> AttemptResult:
    fields = dict(
        success=True,
        phone_number="0707070707",
        solde_data="1234.5Mo",
        raw_value=1234.5,
        method="regex_full_text",
        diagnostic_snapshot=b"\x89PNG-fake",
        attempts=1,
        timestamp=TS,
    )
    fields.update(overrides)
    return AttemptResult(**fields)


class TestScrapeCommand:
    def test_invalid_phone_exits_2(self):
        with patch("soldedata.scraper.orchestrator.run_extraction_sync") as mock_run:
            result = runner.invoke(app, ["scrape", "12-34"])
        assert result.exit_code == 2
        assert "Invalid phone number format" in result.output
        mock_run.assert_not_called()

    def test_success_table(self):
        with patch("soldedata.scraper.orchestrator.run_extraction_sync", return_value=_success()) as mock_run:
            result = runner.invoke(app, ["scrape", "07 07 07 07 07", "--retries", "3", "--log-level", "ERROR"])

        assert result.exit_code == 0
        assert "1234.5Mo" in result.output
        args, _ = mock_run.call_args
        assert args[0] == "0707070707"
        assert args[1].retries == 3

    def test_json_output(self):
        with patch("soldedata.scraper.orchestrator.run_extraction_sync", return_value=_success()):
            result = runner.invoke(app, ["scrape", "0707070707", "--json"])

        assert result.exit_code == 0
        assert '"solde_data": "1234.5Mo"' in result.output

    def test_failure_exits_1(self):
        failed = AttemptResult(success=False, phone_number="0707070707", error="Data balance not found on the page")
        with patch("soldedata.scraper.orchestrator.run_extraction_sync", return_value=failed):
            result = runner.invoke(app, ["scrape", "0707070707"])

        assert result.exit_code == 1
        assert "Data balance not found" in result.output

    def test_screenshot_written(self, tmp_path):
        target = tmp_path / "shots" / "result.png"
        with patch("soldedata.scraper.orchestrator.run_extraction_sync", return_value=_success()):
            result = runner.invoke(app, ["scrape", "0707070707", "--screenshot", str(target)])

        assert result.exit_code == 0
        assert target.read_bytes() == b"\x89PNG-fake"


class TestSettingsCommands:
    def test_validate(self):
        result = runner.invoke(app, ["settings", "validate"])
        assert result.exit_code == 0
        assert "Settings are valid" in result.output
        assert "moninternet.mtn.ci" in result.output

    def test_show(self):
        result = runner.invoke(app, ["settings", "show"])
        assert result.exit_code == 0
        assert "portal_url" in result.output

    def test_show_one_section_as_json(self):
        result = runner.invoke(app, ["settings", "show", "--section", "scraper", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert list(data) == ["scraper"]
        assert data["scraper"]["retries"] == 2

    def test_show_unknown_section(self):
        result = runner.invoke(app, ["settings", "show", "--section", "llm"])
        assert result.exit_code == 2

    def test_validate_reports_bad_portal_and_binary(self, monkeypatch):
        monkeypatch.setenv("SOLDE_SCRAPER__PORTAL_URL", "moninternet.mtn.ci")
        monkeypatch.setenv("SOLDE_BROWSER__EXECUTABLE_PATH", "/nonexistent/chromium")

        result = runner.invoke(app, ["settings", "validate"])

        assert result.exit_code == 1
        assert "portal_url is not an http(s) URL" in result.output
        assert "executable_path does not exist" in result.output

    def test_files_lists_layers(self):
        result = runner.invoke(app, ["settings", "files"])
        assert result.exit_code == 0
        assert "default" in result.output
        assert "local" in result.output


def test_version_flag():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert result.output.startswith("soldedata ")
