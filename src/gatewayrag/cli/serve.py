"""gatewayrag serve — run the HTTP API with uvicorn."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Optional

import typer
import uvicorn

from gatewayrag.api import create_app
from gatewayrag.cli.common import (
    build_service,
    console,
    load_cli_config,
    open_database,
    require_api_key,
)


def serve_cmd(
    host: Annotated[
        Optional[str],
        typer.Option("--host", help="Bind address (default from config: 0.0.0.0)."),
    ] = None,
    port: Annotated[
        Optional[int],
        typer.Option("--port", help="Listen port (default from config or $PORT: 8080)."),
    ] = None,
    db: Annotated[
        Optional[Path],
        typer.Option("--db", help="Path to the knowledge base."),
    ] = None,
) -> None:
    """Serve GET /health and POST /ask."""
    cfg = load_cli_config()
    require_api_key(cfg.embedding.model)
    require_api_key(cfg.generation.model)

    database = open_database(db if db is not None else Path(cfg.database.path))
    app = create_app(build_service(cfg, database), request_timeout=cfg.server.request_timeout)

    bind_host = host or cfg.server.host
    bind_port = port if port is not None else cfg.server.port
    console.print(f"[bold]gatewayrag[/] listening on {bind_host}:{bind_port}")
    uvicorn.run(app, host=bind_host, port=bind_port, log_level=cfg.server.log_level.lower())
