"""``soldedata settings`` — inspect the resolved configuration and check it before a run."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import typer
from rich.console import Console
from rich.table import Table

settings_app = typer.Typer(help="Inspect and check the scraper configuration.")
console = Console()

SECTIONS = ("browser", "scraper", "api")


def _section_table(name: str, values: dict) -> Table:
    table = Table(title=f"[{name}]", show_header=False, title_justify="left")
    for key, value in values.items():
        if isinstance(value, list):
            value = ", ".join(str(v) for v in value) or "(none)"
        table.add_row(key, str(value))
    return table


def collect_problems(settings) -> list[str]:
    """Return human-readable problems that would make every extraction fail."""
    problems: list[str] = []

    portal = urlparse(settings.scraper.portal_url)
    if portal.scheme not in ("http", "https") or not portal.netloc:
        problems.append(f"scraper.portal_url is not an http(s) URL: {settings.scraper.portal_url!r}")

    binary = settings.browser.executable_path
    if binary and not Path(binary).is_file():
        problems.append(f"browser.executable_path does not exist: {binary}")

    if not 1 <= settings.scraper.retries <= 10:
        problems.append(f"scraper.retries must be between 1 and 10, got {settings.scraper.retries}")

    for field in ("timeout_ms", "selector_timeout_ms", "navigation_wait_ms"):
        if getattr(settings.scraper, field) <= 0:
            problems.append(f"scraper.{field} must be positive")

    if not 0 < settings.api.port < 65536:
        problems.append(f"api.port out of range: {settings.api.port}")
    return problems


@settings_app.command("show")
def show_settings(
    section: Optional[str] = typer.Option(None, "--section", "-s", help="Only show one of: browser, scraper, api."),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of tables."),
) -> None:
    """Display the resolved settings (TOML layers + SOLDE_* overrides)."""
    from soldedata.settings import get_settings

    if section is not None and section not in SECTIONS:
        console.print(f"[red]✗[/red] Unknown section {section!r}; choose from {', '.join(SECTIONS)}.")
        raise typer.Exit(code=2)

    dumped = get_settings().model_dump(mode="json")
    if section is not None:
        dumped = {section: dumped[section]}

    if as_json:
        typer.echo(json.dumps(dumped, indent=2))
        return

    top_level = {k: v for k, v in dumped.items() if k not in SECTIONS}
    if top_level:
        console.print(_section_table("general", top_level))
    for name in SECTIONS:
        if name in dumped:
            console.print(_section_table(name, dumped[name]))


@settings_app.command("validate")
def validate_settings() -> None:
    """Load the settings and check the values an extraction depends on."""
    from pydantic import ValidationError

    from soldedata.settings import get_settings

    try:
        settings = get_settings()
    except ValidationError as e:
        console.print(f"[red]✗[/red] Settings could not be loaded: {e}")
        raise typer.Exit(code=1)

    problems = collect_problems(settings)
    if problems:
        for problem in problems:
            console.print(f"[red]✗[/red] {problem}")
        raise typer.Exit(code=1)

    console.print("[green]✓[/green] Settings are valid.")
    console.print(f"  Environment: {settings.env}")
    console.print(f"  Portal: {settings.scraper.portal_url}")
    console.print(f"  Attempts: {settings.scraper.retries} (backoff {settings.scraper.retry_backoff_sec:g}s)")
    console.print(f"  Browser binary: {settings.browser.executable_path or '(bundled Chromium)'}")


@settings_app.command("files")
def config_files() -> None:
    """List the TOML layers in precedence order and whether each exists."""
    from soldedata.settings import get_settings
    from soldedata.settings.config import CONFIG_DIR

    env = get_settings().env
    table = Table("Layer", "Path", "Present")
    for layer, name in (
        ("default", "settings.default.toml"),
        (f"env ({env})", f"settings.{env}.toml"),
        ("local", "settings.local.toml"),
    ):
        path = CONFIG_DIR / name
        table.add_row(layer, str(path), "yes" if path.is_file() else "no")
    console.print(table)
