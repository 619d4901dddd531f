"""Chunk repository — the knowledge base store.

Single interface for: chunk inserts with their embedding, lookup by id,
provider-scoped nearest-neighbour search, and per-provider statistics.
Every method opens its own connection, so one repository instance can be
shared by concurrent requests.
"""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Sequence

from gatewayrag.db.connection import Database
from gatewayrag.db.models import DocChunk, SectionType
from gatewayrag.db.vectors import EMBEDDING_DIMS, to_blob

_DEFAULT_LIMIT = 5

_CHUNK_COLUMNS = """
    c.id, c.provider, c.section_type, c.title, c.content,
    c.source_url, c.api_version, c.tags, c.created_at, c.updated_at
"""


class ChunkRepository:
    """Data access layer for documentation chunks and their embeddings."""

    def __init__(self, db: Database, dimensions: int = EMBEDDING_DIMS) -> None:
        """Initialise with a database handle.

        Args:
            db: Database whose schema has been initialised
                (see gatewayrag.db.schema.initialize).
            dimensions: Expected embedding length.
        """
        self._db = db
        self._dimensions = dimensions

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, chunk: DocChunk, embedding: Sequence[float] | None = None) -> int:
        """Insert *chunk* (and its embedding, if given). Returns the new id.

        Chunk and embedding are written in one transaction.

        Raises:
            ValueError: If *embedding* does not have the configured length.
        """
        blob = to_blob(embedding, self._dimensions) if embedding is not None else None

        with self._db.session() as conn:
            cur = conn.execute(
                """
                INSERT INTO doc_chunks
                    (provider, section_type, title, content, source_url, api_version, tags)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    chunk.provider,
                    SectionType(chunk.section_type).value,
                    chunk.title,
                    chunk.content,
                    chunk.source_url,
                    chunk.api_version,
                    chunk.tags_json,
                ),
            )
            chunk_id = cur.lastrowid
            if blob is not None:
                conn.execute(
                    "INSERT INTO doc_chunk_embeddings (chunk_id, embedding) VALUES (?, ?)",
                    (chunk_id, blob),
                )
            conn.commit()

        chunk.id = chunk_id
        return chunk_id

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_ids(self, ids: Sequence[int]) -> list[DocChunk]:
        """Return the chunks whose id is in *ids*, ordered by id.

        Unknown ids are ignored.
        """
        if not ids:
            return []
        placeholders = ",".join("?" * len(ids))
        with self._db.session() as conn:
            rows = conn.execute(
                f"SELECT {_CHUNK_COLUMNS} FROM doc_chunks c "  # noqa: S608
                f"WHERE c.id IN ({placeholders}) ORDER BY c.id",
                list(ids),
            ).fetchall()
        return [_row_to_chunk(r) for r in rows]

    def search_similar(
        self, provider: str, embedding: Sequence[float], limit: int = _DEFAULT_LIMIT
    ) -> list[DocChunk]:
        """Nearest-neighbour search restricted to *provider*.

        Returns chunks ordered by ascending L2 distance to *embedding*.
        ``limit <= 0`` falls back to 5.
        """
        if limit <= 0:
            limit = _DEFAULT_LIMIT
        blob = to_blob(embedding, self._dimensions)

        with self._db.session() as conn:
            rows = conn.execute(
                f"""
                SELECT {_CHUNK_COLUMNS}
                FROM doc_chunks c
                JOIN doc_chunk_embeddings e ON c.id = e.chunk_id
                WHERE c.provider = ?
                ORDER BY vec_distance_l2(e.embedding, ?), c.id
                LIMIT ?
                """,  # noqa: S608
                (provider, blob, limit),
            ).fetchall()
        return [_row_to_chunk(r) for r in rows]

    def count_by_provider(self) -> dict[str, dict[str, int]]:
        """Return ``{provider: {section_type: count}}`` for all stored chunks."""
        with self._db.session() as conn:
            rows = conn.execute(
                """
                SELECT provider, section_type, COUNT(*) AS n
                FROM doc_chunks
                GROUP BY provider, section_type
                ORDER BY provider, section_type
                """
            ).fetchall()
        stats: dict[str, dict[str, int]] = {}
        for row in rows:
            stats.setdefault(row["provider"], {})[row["section_type"]] = row["n"]
        return stats


# ------------------------------------------------------------------
# Row → model helpers
# ------------------------------------------------------------------


def _row_to_chunk(row: sqlite3.Row) -> DocChunk:
    return DocChunk(
        id=row["id"],
        provider=row["provider"],
        section_type=SectionType(row["section_type"]),
        title=row["title"],
        content=row["content"],
        source_url=row["source_url"],
        api_version=row["api_version"],
        tags=json.loads(row["tags"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
