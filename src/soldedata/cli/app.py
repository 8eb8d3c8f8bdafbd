"""``soldedata`` command-line entry point.

Commands: ``scrape`` (one extraction), ``serve`` (REST API), ``settings``
(inspect configuration). Flags on a command override SOLDE_* variables,
which override the TOML layers under ``config/``.
"""

from __future__ import annotations

from typing import Optional

import typer

from soldedata import __version__
from soldedata.cli.scrape import scrape
from soldedata.cli.settings_cmd import settings_app

app = typer.Typer(
    add_completion=True,
    help="Read the mobile-data balance of an MTN CI number from the self-care portal.",
)

app.command("scrape")(scrape)
app.add_typer(settings_app, name="settings")


@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default: api.host)."),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port (default: api.port)."),
    workers: int = typer.Option(1, "--workers", min=1, help="Uvicorn worker processes."),
) -> None:
    """Serve POST /scrape-mtn, GET /health and GET / over HTTP."""
    import uvicorn

    from soldedata.log_config import configure_logging
    from soldedata.settings import get_settings

    api = get_settings().api
    # log_config=None: uvicorn logs through the root handler.
    configure_logging()
    uvicorn.run(
        "soldedata.api.app:app",
        host=host or api.host,
        port=port or api.port,
        workers=workers,
        log_config=None,
    )


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context, version: bool = typer.Option(False, "--version", help="Show version and exit.")) -> None:
    if version:
        typer.echo(f"soldedata {__version__}")
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()
