"""Capability interfaces injected into the ingestion pipeline and RetrievalService.

Any object with matching methods satisfies them; tests pass fakes.
``timeout`` is the remaining request budget in seconds (None = unbounded).
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from gatewayrag.db.models import DocChunk


class Embedder(Protocol):
    def embed(self, text: str, *, timeout: float | None = None) -> list[float]:
        """Return a fixed-length vector for *text*.

        Raises:
            EmbeddingError: On empty normalized text or upstream failure.
        """
        ...


class Generator(Protocol):
    def generate(
        self,
        question: str,
        chunks: Sequence[DocChunk],
        provider: str,
        lang: str,
        *,
        timeout: float | None = None,
    ) -> str:
        """Answer *question* from *chunks* (never empty) in language *lang*.

        Raises:
            GenerationError: On upstream failure or an empty answer.
        """
        ...


class Store(Protocol):
    def insert(self, chunk: DocChunk, embedding: Sequence[float] | None = None) -> int:
        ...

    def get_by_ids(self, ids: Sequence[int]) -> list[DocChunk]:
        ...

    def search_similar(
        self, provider: str, embedding: Sequence[float], limit: int
    ) -> list[DocChunk]:
        ...
