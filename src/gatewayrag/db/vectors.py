"""Embedding vector encoding for the doc_chunk_embeddings table."""

from __future__ import annotations

from collections.abc import Sequence

import sqlite_vec

EMBEDDING_DIMS = 768


def to_blob(embedding: Sequence[float], dimensions: int = EMBEDDING_DIMS) -> bytes:
    """Serialize *embedding* as a float32 blob understood by sqlite-vec.

    Raises:
        ValueError: If the vector length differs from *dimensions*.
    """
    if len(embedding) != dimensions:
        raise ValueError(
            f"unexpected embedding size {len(embedding)} (expected {dimensions})"
        )
    return sqlite_vec.serialize_float32(list(embedding))
