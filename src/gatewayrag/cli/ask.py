"""gatewayrag ask — answer one question from the terminal."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.panel import Panel
from rich.table import Table

from gatewayrag.cli.common import (
    build_service,
    console,
    load_cli_config,
    open_database,
    require_api_key,
)
from gatewayrag.cli.errors import err_provider_not_resolved
from gatewayrag.rag.errors import (
    CollaboratorError,
    DeadlineExceededError,
    InvalidRequestError,
    ProviderNotResolvedError,
)
from gatewayrag.rag.service import AskRequest, AskResponse, Deadline


def ask_cmd(
    question: Annotated[str, typer.Argument(help="Question about the provider's API.")],
    provider: Annotated[
        Optional[str],
        typer.Option("--provider", help="rede or entrepay (inferred from the question if omitted)."),
    ] = None,
    top_k: Annotated[
        Optional[int],
        typer.Option("--top-k", help="Chunks to retrieve (default from config: 5)."),
    ] = None,
    lang: Annotated[
        Optional[str],
        typer.Option("--lang", help="Reply language: pt, en, es or auto."),
    ] = None,
    db: Annotated[
        Optional[Path],
        typer.Option("--db", help="Path to the knowledge base."),
    ] = None,
) -> None:
    """Ask a question and print the answer with its sources."""
    if not question.strip():
        console.print("[red]Error:[/] The question is empty.")
        raise typer.Exit(1)

    cfg = load_cli_config()
    require_api_key(cfg.embedding.model)
    require_api_key(cfg.generation.model)
    database = open_database(db if db is not None else Path(cfg.database.path), must_exist=True)
    service = build_service(cfg, database)

    request = AskRequest(question=question, provider=provider, top_k=top_k, lang=lang)
    try:
        response = service.ask(request, deadline=Deadline(cfg.server.request_timeout))
    except ProviderNotResolvedError as exc:
        console.print(err_provider_not_resolved())
        raise typer.Exit(1) from exc
    except (InvalidRequestError, CollaboratorError, DeadlineExceededError) as exc:
        console.print(f"[red]Error:[/] {exc}")
        raise typer.Exit(1) from exc

    _show_response(response)


def _show_response(response: AskResponse) -> None:
    console.print(
        Panel(response.answer, title=f"[bold]{response.provider}[/]", expand=False)
    )
    if not response.sources:
        return

    table = Table(show_header=True, box=None, padding=(0, 1))
    table.add_column("#", style="dim")
    table.add_column("Title", style="bold")
    table.add_column("Source", style="dim")
    for source in response.sources:
        table.add_row(str(source.chunk_id), source.title, source.source_url or "-")
    console.print(table)
