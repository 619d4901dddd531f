"""gatewayrag ingest — import provider documentation into the knowledge base.

Modes (at least one, both allowed in one run):
  --from-files --path DIR       .md .txt .html .htm .pdf under DIR (recursive, sorted)
  --from-url --base-url URL     breadth-first crawl of URL's host, up to --max-pages fetches

Every stored chunk is tagged with --provider (and --api-version, if given).
A document that fails is logged and skipped; the run always continues.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from gatewayrag.cli.common import (
    build_embedder,
    console,
    load_cli_config,
    open_database,
    require_api_key,
)
from gatewayrag.cli.errors import (
    err_missing_base_url,
    err_missing_path,
    err_missing_provider,
    err_no_mode,
    err_not_a_directory,
    err_ssrf_blocked,
)
from gatewayrag.db.models import DocChunk
from gatewayrag.db.repository import ChunkRepository
from gatewayrag.ingest.crawler import Crawler, SsrfError
from gatewayrag.ingest.pipeline import IngestPipeline, IngestReport


def ingest_cmd(
    provider: Annotated[
        Optional[str],
        typer.Option("--provider", help="Provider the docs belong to (e.g. rede, entrepay)."),
    ] = None,
    from_files: Annotated[
        bool,
        typer.Option("--from-files", help="Import local files from --path."),
    ] = False,
    path: Annotated[
        Optional[Path],
        typer.Option("--path", help="Directory with .md/.txt/.html/.htm/.pdf files."),
    ] = None,
    from_url: Annotated[
        bool,
        typer.Option("--from-url", help="Crawl a documentation site from --base-url."),
    ] = False,
    base_url: Annotated[
        Optional[str],
        typer.Option("--base-url", help="Start URL of the crawl; links stay on its host."),
    ] = None,
    max_pages: Annotated[
        Optional[int],
        typer.Option("--max-pages", min=1, help="Maximum pages fetched by the crawl (default 50)."),
    ] = None,
    api_version: Annotated[
        str,
        typer.Option("--api-version", help="API version tag stored on every chunk."),
    ] = "",
    db: Annotated[
        Optional[Path],
        typer.Option("--db", help="Path to the knowledge base (created if missing)."),
    ] = None,
    allow_private: Annotated[
        bool,
        typer.Option("--allow-private", help="Allow crawling private/loopback addresses."),
    ] = False,
) -> None:
    """Import provider documentation from local files and/or a website."""
    # ---- Input validation (before any network or model call) ----
    if provider is None or not provider.strip():
        console.print(err_missing_provider())
        raise typer.Exit(1)
    if not from_files and not from_url:
        console.print(err_no_mode())
        raise typer.Exit(1)
    if from_files and path is None:
        console.print(err_missing_path())
        raise typer.Exit(1)
    if from_url and not (base_url or "").strip():
        console.print(err_missing_base_url())
        raise typer.Exit(1)
    if from_files and path is not None and not path.is_dir():
        console.print(err_not_a_directory(str(path)))
        raise typer.Exit(1)

    cfg = load_cli_config()
    require_api_key(cfg.embedding.model)

    database = open_database(db if db is not None else Path(cfg.database.path))
    store = ChunkRepository(database, dimensions=cfg.embedding.dimensions)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        transient=True,
        console=console,
    ) as prog:
        task = prog.add_task("Importing…", total=None)

        def _on_chunk(chunk: DocChunk) -> None:
            prog.update(task, description=f"Stored [bold]{chunk.title}[/]")

        pipeline = IngestPipeline(
            store=store,
            embedder=build_embedder(cfg),
            provider=provider,
            api_version=api_version,
            max_chunk_chars=cfg.ingest.max_chunk_chars,
            on_chunk=_on_chunk,
        )

        reports: list[tuple[str, IngestReport]] = []
        if from_files and path is not None:
            reports.append((str(path), pipeline.ingest_directory(path)))

        if from_url and base_url:
            crawler = Crawler(timeout=cfg.ingest.fetch_timeout, allow_private=allow_private)
            pages = max_pages if max_pages is not None else cfg.ingest.max_pages
            try:
                reports.append((base_url, pipeline.ingest_site(base_url, pages, crawler)))
            except SsrfError as exc:
                console.print(err_ssrf_blocked(base_url))
                raise typer.Exit(1) from exc
            except ValueError as exc:
                console.print(f"[red]Error:[/] {exc}")
                raise typer.Exit(1) from exc

    for source, report in reports:
        _show_report(source, pipeline.provider, report)


# ------------------------------------------------------------------
# Output
# ------------------------------------------------------------------


def _show_report(source: str, provider: str, report: IngestReport) -> None:
    console.print(
        f"\n[bold]→ {source}[/]  [dim]({provider})[/]\n"
        f"  [green]✓[/] {report.documents} documents, {report.chunks} chunks stored"
    )
    if not report.failures:
        return

    table = Table(show_header=True, box=None, padding=(0, 1))
    table.add_column("Skipped", style="yellow")
    table.add_column("Reason", style="dim")
    for failed, reason in report.failures:
        table.add_row(failed, reason)
    console.print(f"  [yellow]✗ {len(report.failures)} skipped[/]")
    console.print(table)
