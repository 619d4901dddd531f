"""Retrieval-augmented answering service.

Pipeline for one question (strictly sequential):
  1. Validate the question.
  2. Resolve provider (explicit → keyword inference) and reply language
     (explicit → langdetect).
  3. Embed the question.
  4. Nearest-neighbour search scoped to the provider, top-k chunks.
  5. No chunks → fixed "not found" answer, generator is not called.
  6. Generate the answer from the chunks.
  7. Cite one source per chunk, in retrieval order.

The service keeps no per-request state; concurrent calls are independent.
Each collaborator call receives what is left of the request's Deadline.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from gatewayrag.db.models import DocChunk
from gatewayrag.rag.errors import (
    DeadlineExceededError,
    InvalidRequestError,
    ProviderNotResolvedError,
)
from gatewayrag.rag.interfaces import Embedder, Generator, Store
from gatewayrag.rag.resolve import resolve_language, resolve_provider

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 5
NOT_FOUND_ANSWER = "Não encontrei nada na documentação indexada para essa pergunta."


@dataclass
class AskRequest:
    question: str
    provider: str | None = None
    top_k: int | None = None
    lang: str | None = None


@dataclass
class SourceRef:
    chunk_id: int | None
    title: str
    provider: str
    source_url: str

    def to_dict(self) -> dict:
        return {
            "chunkId": self.chunk_id,
            "title": self.title,
            "provider": self.provider,
            "sourceUrl": self.source_url,
        }


@dataclass
class AskResponse:
    answer: str
    provider: str
    sources: list[SourceRef] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "answer": self.answer,
            "provider": self.provider,
            "sources": [s.to_dict() for s in self.sources],
        }


class Deadline:
    """Wall-clock budget for one request, measured on the monotonic clock."""

    def __init__(self, seconds: float) -> None:
        self.seconds = seconds
        self._expires_at = time.monotonic() + seconds

    def remaining(self) -> float:
        return max(0.0, self._expires_at - time.monotonic())

    def expired(self) -> bool:
        return self.remaining() <= 0.0

    def check(self, step: str) -> float:
        """Return the remaining seconds, or raise if none are left before *step*."""
        remaining = self.remaining()
        if remaining <= 0.0:
            raise DeadlineExceededError(
                f"request deadline of {self.seconds:g}s exceeded before {step}"
            )
        return remaining


class RetrievalService:
    """Answer questions against the indexed documentation.

    Args:
        store: Chunk store with provider-scoped similarity search.
        embedder: Turns the question into a vector.
        generator: Writes the grounded answer.
        default_top_k: Chunks retrieved when the request gives no positive top-k.
    """

    def __init__(
        self,
        store: Store,
        embedder: Embedder,
        generator: Generator,
        default_top_k: int = DEFAULT_TOP_K,
    ) -> None:
        self._store = store
        self._embedder = embedder
        self._generator = generator
        self._default_top_k = default_top_k if default_top_k > 0 else DEFAULT_TOP_K

    def ask(self, request: AskRequest, deadline: Deadline | None = None) -> AskResponse:
        """Answer *request*.

        Raises:
            InvalidRequestError: If the question is empty or whitespace-only.
            ProviderNotResolvedError: If no provider is given or inferable.
            EmbeddingError, GenerationError: On collaborator failure.
            DeadlineExceededError: If *deadline* runs out.
        """
        question = (request.question or "").strip()
        if not question:
            raise InvalidRequestError("question is required")

        provider = resolve_provider(request.provider, question)
        if provider is None:
            raise ProviderNotResolvedError(
                "could not infer provider (ex: use 'rede' or 'entrepay')"
            )

        lang = resolve_language(request.lang, question)
        top_k = request.top_k if request.top_k and request.top_k > 0 else self._default_top_k

        vector = self._embedder.embed(question, timeout=_budget(deadline, "embedding"))

        _budget(deadline, "search")
        chunks = self._store.search_similar(provider, vector, top_k)
        logger.info(
            "Retrieved %d chunks provider=%s lang=%s top_k=%d", len(chunks), provider, lang, top_k
        )

        if not chunks:
            return AskResponse(answer=NOT_FOUND_ANSWER, provider=provider, sources=[])

        answer = self._generator.generate(
            question, chunks, provider, lang, timeout=_budget(deadline, "generation")
        )

        return AskResponse(
            answer=answer,
            provider=provider,
            sources=[_source_ref(c) for c in chunks],
        )


def _budget(deadline: Deadline | None, step: str) -> float | None:
    return deadline.check(step) if deadline is not None else None


def _source_ref(chunk: DocChunk) -> SourceRef:
    return SourceRef(
        chunk_id=chunk.id,
        title=chunk.title,
        provider=chunk.provider,
        source_url=chunk.source_url,
    )
