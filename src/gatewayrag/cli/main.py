"""gatewayrag CLI entry point."""

from __future__ import annotations

import importlib.metadata
from typing import Annotated

import typer

from gatewayrag.cli.ask import ask_cmd
from gatewayrag.cli.ingest import ingest_cmd
from gatewayrag.cli.serve import serve_cmd
from gatewayrag.cli.status import status_cmd
from gatewayrag.logging_config import setup_logging


def _installed_version() -> str:
    try:
        return importlib.metadata.version("gatewayrag")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"gatewayrag {_installed_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="gatewayrag",
    help=(
        "gatewayrag — payment gateway documentation assistant.\n\n"
        "  gatewayrag ingest  Import provider docs (local files or a crawled site).\n"
        "  gatewayrag serve   Run the HTTP API (/health, /ask).\n"
        "  gatewayrag ask     Ask a question from the terminal."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    log_level: Annotated[
        str,
        typer.Option("--log-level", envvar="LOG_LEVEL", help="Logging level (DEBUG, INFO, ...)."),
    ] = "INFO",
) -> None:
    """gatewayrag — payment gateway documentation assistant."""
    setup_logging(log_level)


app.command("ingest")(ingest_cmd)
app.command("serve")(serve_cmd)
app.command("ask")(ask_cmd)
app.command("status")(status_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed gatewayrag version."""
    typer.echo(f"gatewayrag {_installed_version()}")


if __name__ == "__main__":
    app()
