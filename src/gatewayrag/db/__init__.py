"""gatewayrag database layer."""

from gatewayrag.db.connection import Database
from gatewayrag.db.migrations import MIGRATIONS, run_migrations
from gatewayrag.db.models import DocChunk, SectionType
from gatewayrag.db.repository import ChunkRepository
from gatewayrag.db.schema import initialize
from gatewayrag.db.vectors import EMBEDDING_DIMS, to_blob

__all__ = [
    "Database",
    "initialize",
    "run_migrations",
    "MIGRATIONS",
    "ChunkRepository",
    "DocChunk",
    "SectionType",
    "EMBEDDING_DIMS",
    "to_blob",
]
