"""gatewayrag status — chunk counts per provider and section."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.panel import Panel
from rich.table import Table

from gatewayrag.cli.common import console, load_cli_config, open_database
from gatewayrag.db.models import SectionType
from gatewayrag.db.repository import ChunkRepository


def status_cmd(
    db: Annotated[
        Optional[Path],
        typer.Option("--db", help="Path to the knowledge base."),
    ] = None,
) -> None:
    """Show what the knowledge base contains."""
    cfg = load_cli_config()
    db_path = db if db is not None else Path(cfg.database.path)

    if not db_path.exists():
        console.print(
            Panel(
                "[yellow]No database found.[/]\n"
                "  Run:  gatewayrag ingest --provider <name> ...",
                title="[bold]Knowledge Base[/]",
                expand=False,
            )
        )
        return

    stats = ChunkRepository(open_database(db_path)).count_by_provider()
    size_mb = db_path.stat().st_size / (1024 * 1024)
    total = sum(n for sections in stats.values() for n in sections.values())

    header = f"Database:  {db_path} ({size_mb:.1f} MB)\nChunks:    [bold]{total:,}[/]"
    if not stats:
        console.print(
            Panel(
                f"{header}\n[dim]No documentation ingested yet.[/]",
                title="[bold]Knowledge Base[/]",
                expand=False,
            )
        )
        return

    table = Table(show_header=True, box=None, padding=(0, 1))
    table.add_column("Provider", style="bold")
    for section in SectionType:
        table.add_column(section.value, justify="right")
    table.add_column("total", justify="right", style="bold")

    for provider, sections in stats.items():
        counts = [sections.get(section.value, 0) for section in SectionType]
        table.add_row(provider, *(str(n) for n in counts), str(sum(counts)))

    console.print(Panel(header, title="[bold]Knowledge Base[/]", expand=False))
    console.print(table)
