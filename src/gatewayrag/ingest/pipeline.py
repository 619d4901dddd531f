"""Ingestion pipeline — extract, chunk, classify, embed and store documents.

Two entry points share one per-document path:
- ``ingest_directory()`` walks a local tree for .md .txt .html .htm .pdf files.
- ``ingest_site()`` crawls a documentation site breadth-first.

Documents are processed one at a time, fully, before the next one starts.
A failing document (unreadable file, bad PDF, embedding or store error) is
logged, recorded in the IngestReport and skipped; the run continues.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from gatewayrag.db.models import DocChunk
from gatewayrag.ingest.chunker import DEFAULT_MAX_LEN, LineChunker, part_titles
from gatewayrag.ingest.classifier import classify
from gatewayrag.ingest.crawler import Crawler, url_to_title
from gatewayrag.ingest.extract import (
    DocumentKind,
    ExtractionError,
    extract,
    kind_for_path,
)
from gatewayrag.ingest.sanitize import sanitize
from gatewayrag.rag.errors import CollaboratorError
from gatewayrag.rag.interfaces import Embedder, Store

logger = logging.getLogger(__name__)

_MAX_DEPTH = 10


@dataclass
class IngestReport:
    """Outcome of one ingestion run."""

    documents: int = 0
    chunks: int = 0
    failures: list[tuple[str, str]] = field(default_factory=list)

    def record_failure(self, source: str, reason: str) -> None:
        self.failures.append((source, reason))


class IngestPipeline:
    """Store documentation for one provider.

    Args:
        store: Destination for chunks and embeddings.
        embedder: Produces one vector per chunk.
        provider: Gateway every stored chunk belongs to.
        api_version: Optional API version tag copied onto every chunk.
        max_chunk_chars: Upper bound on chunk length.
        on_chunk: Called with each stored chunk (progress reporting).
    """

    def __init__(
        self,
        store: Store,
        embedder: Embedder,
        provider: str,
        api_version: str = "",
        max_chunk_chars: int = DEFAULT_MAX_LEN,
        on_chunk: Callable[[DocChunk], None] | None = None,
    ) -> None:
        if not provider.strip():
            raise ValueError("provider is required")
        self._store = store
        self._embedder = embedder
        self.provider = provider.strip()
        self.api_version = api_version
        self._chunker = LineChunker(max_chunk_chars)
        self._on_chunk = on_chunk

    # ------------------------------------------------------------------
    # Per-document path
    # ------------------------------------------------------------------

    def store_document(
        self,
        title: str,
        content: str,
        source_url: str = "",
        ids: list[int] | None = None,
    ) -> list[int]:
        """Chunk, classify, embed and store *content*. Returns the new chunk ids.

        Ids are appended to *ids* when given, so a caller still sees the
        chunks stored before a failure.

        Raises:
            CollaboratorError: If embedding a chunk fails.
        """
        segments = self._chunker.chunk(content)
        ids = ids if ids is not None else []
        for chunk_title, segment in zip(part_titles(title, len(segments)), segments):
            section, tags = classify(segment)
            chunk = DocChunk(
                provider=self.provider,
                section_type=section,
                title=chunk_title,
                content=segment,
                source_url=source_url,
                api_version=self.api_version,
                tags=tags,
            )
            vector = self._embedder.embed(segment)
            chunk_id = self._store.insert(chunk, vector)
            logger.info(
                "Stored chunk provider=%s id=%d len=%d title=%s",
                self.provider,
                chunk_id,
                len(segment),
                chunk_title,
            )
            if self._on_chunk is not None:
                self._on_chunk(chunk)
            ids.append(chunk_id)
        return ids

    def _store_safely(
        self, report: IngestReport, source: str, title: str, text: str, source_url: str = ""
    ) -> None:
        ids: list[int] = []
        try:
            self.store_document(title, text, source_url=source_url, ids=ids)
        except (CollaboratorError, ValueError, sqlite3.Error) as exc:
            logger.error(
                "Failed to store chunks of %s after %d stored: %s", source, len(ids), exc
            )
            report.chunks += len(ids)
            report.record_failure(source, str(exc))
            return
        if ids:
            report.documents += 1
            report.chunks += len(ids)

    # ------------------------------------------------------------------
    # Local files
    # ------------------------------------------------------------------

    def ingest_directory(self, root: Path | str) -> IngestReport:
        """Ingest every supported file under *root* (recursive, sorted).

        Raises:
            FileNotFoundError: If *root* is not a directory.
        """
        root = Path(root)
        if not root.is_dir():
            raise FileNotFoundError(f"Not a directory: {root}")

        logger.info("Importing local docs from %s for provider=%s", root, self.provider)
        report = IngestReport()
        for path in scan_dir(root):
            try:
                text = read_document(path)
            except (ExtractionError, OSError) as exc:
                logger.error("Skipping %s: %s", path, exc)
                report.record_failure(str(path), str(exc))
                continue
            if not text:
                logger.info("Skipping %s: no text", path)
                continue
            self._store_safely(report, str(path), filename_to_title(path), text)
        return report

    # ------------------------------------------------------------------
    # HTTP crawl
    # ------------------------------------------------------------------

    def ingest_site(
        self, base_url: str, max_pages: int, crawler: Crawler | None = None
    ) -> IngestReport:
        """Crawl *base_url* (up to *max_pages* fetches) and ingest each page."""
        crawler = crawler or Crawler()
        logger.info(
            "Crawling base=%s provider=%s max_pages=%d", base_url, self.provider, max_pages
        )
        report = IngestReport()
        for page in crawler.crawl(base_url, max_pages):
            text = extract(page.html, DocumentKind.HTML).strip()
            if not text:
                logger.info("Skipping %s: no text", page.url)
                continue
            self._store_safely(
                report, page.url, url_to_title(page.url, base_url), text, source_url=page.url
            )
        return report


# ------------------------------------------------------------------
# File helpers
# ------------------------------------------------------------------


def read_document(path: Path) -> str:
    """Read and extract *path* according to its extension.

    Raises:
        ExtractionError: If the file type is unsupported or a PDF is unreadable.
        OSError: If the file cannot be read.
    """
    kind = kind_for_path(path)
    if kind is None:
        raise ExtractionError(f"Unsupported file type: {path.suffix!r}")
    return sanitize(extract(path.read_bytes(), kind).strip())


def filename_to_title(path: Path | str) -> str:
    """File stem with hyphens turned into spaces."""
    return Path(path).stem.replace("-", " ").strip()


def scan_dir(directory: Path, depth: int = 0, max_depth: int = _MAX_DEPTH) -> list[Path]:
    """Return supported files in *directory*, recursing into subdirectories."""
    if depth > max_depth:
        return []
    files: list[Path] = []
    try:
        entries = sorted(directory.iterdir())
    except PermissionError:
        logger.warning("Permission denied: %s", directory)
        return []
    for entry in entries:
        if entry.is_file() and kind_for_path(entry) is not None:
            files.append(entry)
        elif entry.is_dir() and depth < max_depth:
            files.extend(scan_dir(entry, depth=depth + 1, max_depth=max_depth))
    return files
