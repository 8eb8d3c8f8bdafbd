"""CLI commands for running an extraction from the terminal."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

console = Console()


def scrape(
    phone_number: str = typer.Argument(..., help="Subscriber number (8 to 15 digits, spaces allowed)."),
    timeout: Optional[int] = typer.Option(None, "--timeout", help="Navigation timeout in milliseconds."),
    wait_after_click: Optional[int] = typer.Option(
        None, "--wait-after-click", help="Delay (ms) when submission triggers no navigation."
    ),
    retries: Optional[int] = typer.Option(None, "--retries", min=1, max=10, help="Maximum number of attempts."),
    screenshot: Optional[Path] = typer.Option(None, "--screenshot", help="Write the diagnostic PNG to this path."),
    as_json: bool = typer.Option(False, "--json", help="Print the raw JSON response instead of a table."),
    log_level: str = typer.Option("WARNING", "--log-level", help="Log level for pipeline output on stderr."),
) -> None:
    """Extract the mobile-data balance for PHONE_NUMBER."""
    from soldedata.log_config import configure_logging
    from soldedata.models.session import ScrapeOptions, clean_phone_number, is_valid_phone_number
    from soldedata.scraper.orchestrator import run_extraction_sync

    cleaned = clean_phone_number(phone_number)
    if not is_valid_phone_number(cleaned):
        console.print("[red]✗[/red] Invalid phone number format. Use 8 to 15 digits.")
        raise typer.Exit(code=2)

    configure_logging(log_level)
    options = ScrapeOptions(timeout=timeout, wait_after_click=wait_after_click, retries=retries)

    with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"), console=console) as progress:
        task = progress.add_task(f"Querying balance for {cleaned}...", total=None)
        result = run_extraction_sync(cleaned, options)
        progress.update(task, completed=True)

    if screenshot and result.diagnostic_snapshot is not None:
        screenshot.parent.mkdir(parents=True, exist_ok=True)
        screenshot.write_bytes(result.diagnostic_snapshot)

    if as_json:
        typer.echo(result.to_json())
    elif result.success:
        table = Table(title="Data balance", show_header=False)
        table.add_row("Phone number", result.phone_number)
        table.add_row("Balance", result.solde_data or "")
        table.add_row("Raw value", f"{result.raw_value:g} {result.unit}")
        table.add_row("Method", result.method)
        table.add_row("Attempts", str(result.attempts))
        table.add_row("Time", f"{result.execution_time_ms} ms")
        console.print(table)
    else:
        console.print(Panel(result.error or "unknown error", title="[red]Extraction failed[/red]", border_style="red"))
        if result.page_preview:
            console.print(f"[dim]{result.page_preview[:300]}[/dim]")

    if screenshot and result.diagnostic_snapshot is not None and not as_json:
        console.print(f"  Screenshot saved to: {screenshot}")

    if not result.success:
        raise typer.Exit(code=1)
