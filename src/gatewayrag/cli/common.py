"""Shared CLI helpers: config loading, database opening, service wiring."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from gatewayrag.cli.errors import err_config, err_no_api_key, err_no_db
from gatewayrag.config import ConfigError, GatewayConfig, load_config
from gatewayrag.db.connection import Database
from gatewayrag.db.repository import ChunkRepository
from gatewayrag.db.schema import initialize
from gatewayrag.rag.llm_client import LiteLLMEmbedder, LiteLLMGenerator, validate_api_key
from gatewayrag.rag.service import RetrievalService

console = Console()


def load_cli_config() -> GatewayConfig:
    """load_config() with ConfigError turned into exit code 1."""
    try:
        return load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1) from exc


def open_database(db_path: Path, *, must_exist: bool = False) -> Database:
    """Return a Database at *db_path* with the schema migrated.

    With *must_exist*, a missing file is reported and exits with code 1.
    """
    if must_exist and not db_path.exists():
        console.print(err_no_db(str(db_path)))
        raise typer.Exit(1)
    db = Database(db_path)
    with db.session() as conn:
        initialize(conn)
    return db


def require_api_key(model: str) -> None:
    """Exit with code 1 when no API key is configured for *model*."""
    try:
        validate_api_key(model)
    except EnvironmentError as exc:
        provider = model.split("/")[0] if "/" in model else "openai"
        console.print(err_no_api_key(provider))
        raise typer.Exit(1) from exc


def build_embedder(cfg: GatewayConfig) -> LiteLLMEmbedder:
    return LiteLLMEmbedder(model=cfg.embedding.model, dimensions=cfg.embedding.dimensions)


def build_service(cfg: GatewayConfig, db: Database) -> RetrievalService:
    """Wire the LiteLLM collaborators and the sqlite store into a RetrievalService."""
    generator = LiteLLMGenerator(
        model=cfg.generation.model,
        max_tokens=cfg.generation.max_tokens,
        temperature=cfg.generation.temperature,
        max_context_chunks=cfg.retrieval.max_context_chunks,
        title_max_chars=cfg.retrieval.title_max_chars,
        body_max_chars=cfg.retrieval.body_max_chars,
    )
    return RetrievalService(
        store=ChunkRepository(db, dimensions=cfg.embedding.dimensions),
        embedder=build_embedder(cfg),
        generator=generator,
        default_top_k=cfg.retrieval.top_k,
    )
