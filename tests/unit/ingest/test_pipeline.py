"""Tests for the ingestion pipeline — local tree walk and crawled site."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from gatewayrag.db.models import SectionType
from gatewayrag.db.repository import ChunkRepository
from gatewayrag.ingest.crawler import CrawledPage
from gatewayrag.ingest.pipeline import (
    IngestPipeline,
    filename_to_title,
    read_document,
    scan_dir,
)
from gatewayrag.rag.errors import EmbeddingError


class FakeEmbedder:
    """Deterministic 768-dim vectors; records every embedded text."""

    def __init__(self, fail_on: str | None = None) -> None:
        self.texts: list[str] = []
        self.fail_on = fail_on

    def embed(self, text, *, timeout=None):
        if self.fail_on and self.fail_on in text:
            raise EmbeddingError("embedding call failed: quota")
        self.texts.append(text)
        return [float(len(self.texts))] + [0.0] * 767


class FailingOnCallEmbedder(FakeEmbedder):
    """Fails on the *n*-th embed call (1-based)."""

    def __init__(self, n: int) -> None:
        super().__init__()
        self.n = n
        self.calls = 0

    def embed(self, text, *, timeout=None):
        self.calls += 1
        if self.calls == self.n:
            raise EmbeddingError("embedding call failed: boom")
        return super().embed(text, timeout=timeout)


@pytest.fixture
def store(tmp_db):
    return ChunkRepository(tmp_db)


@pytest.fixture
def embedder():
    return FakeEmbedder()


def _all_chunks(store, provider):
    return store.search_similar(provider, [0.0] * 768, limit=100)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def test_filename_to_title():
    assert filename_to_title(Path("docs/3ds-authentication.md")) == "3ds authentication"


def test_scan_dir_sorted_recursive_filtered(tmp_path):
    (tmp_path / "b.md").write_text("b")
    (tmp_path / "a.txt").write_text("a")
    (tmp_path / "skip.json").write_text("{}")
    sub = tmp_path / "sub"
    sub.mkdir()
    (sub / "c.html").write_text("<p>c</p>")
    names = [p.relative_to(tmp_path).as_posix() for p in scan_dir(tmp_path)]
    assert names == ["a.txt", "b.md", "sub/c.html"]


def test_read_document_html(tmp_path):
    path = tmp_path / "page.htm"
    path.write_text("<html><body><script>x()</script><h1>Estorno</h1></body></html>")
    assert read_document(path) == "Estorno"


# ------------------------------------------------------------------
# store_document
# ------------------------------------------------------------------

def test_store_document_classifies_and_tags(store, embedder):
    pipeline = IngestPipeline(store, embedder, provider="rede", api_version="v1")
    [chunk_id] = pipeline.store_document(
        "Captura", "endpoint POST /transactions/capture", source_url="https://x.test/capture"
    )
    [stored] = store.get_by_ids([chunk_id])
    assert stored.provider == "rede"
    assert stored.section_type is SectionType.ENDPOINT
    assert stored.tags == ["capture", "transaction"]
    assert stored.api_version == "v1"
    assert stored.source_url == "https://x.test/capture"
    assert stored.title == "Captura"


def test_store_document_splits_with_part_titles(store, embedder):
    pipeline = IngestPipeline(store, embedder, provider="entrepay", max_chunk_chars=50)
    content = "\n".join(f"linha {i} da documentação" for i in range(10))
    ids = pipeline.store_document("Guia", content)
    chunks = store.get_by_ids(ids)
    assert len(chunks) > 1
    assert [c.title for c in chunks] == [f"Guia (parte {i})" for i in range(1, len(chunks) + 1)]
    assert all(len(c.content) <= 50 for c in chunks)
    assert len(embedder.texts) == len(chunks)


def test_store_document_empty_content_stores_nothing(store, embedder):
    pipeline = IngestPipeline(store, embedder, provider="rede")
    assert pipeline.store_document("Vazio", "   \n  ") == []
    assert embedder.texts == []


def test_pipeline_requires_provider(store, embedder):
    with pytest.raises(ValueError, match="provider"):
        IngestPipeline(store, embedder, provider="  ")


def test_on_chunk_called_per_chunk(store, embedder):
    seen = []
    pipeline = IngestPipeline(store, embedder, provider="rede", on_chunk=seen.append)
    pipeline.store_document("T", "body text")
    assert [c.title for c in seen] == ["T"]
    assert seen[0].id is not None


# ------------------------------------------------------------------
# ingest_directory
# ------------------------------------------------------------------

def test_ingest_directory_imports_supported_files(tmp_path, store, embedder):
    docs = tmp_path / "docs"
    docs.mkdir()
    (docs / "visao-geral.md").write_text("Visão geral da API de pagamentos.")
    (docs / "erros.html").write_text("<p>Tabela de código de erro</p>")
    (docs / "ignore.json").write_text("{}")

    report = IngestPipeline(store, embedder, provider="rede").ingest_directory(docs)

    assert report.documents == 2
    assert report.chunks == 2
    assert report.failures == []
    titles = sorted(c.title for c in _all_chunks(store, "rede"))
    assert titles == ["erros", "visao geral"]


def test_ingest_directory_skips_bad_pdf_and_continues(tmp_path, store, embedder):
    docs = tmp_path / "docs"
    docs.mkdir()
    (docs / "a-broken.pdf").write_bytes(b"not a pdf")
    (docs / "b-ok.txt").write_text("Sandbox credentials")

    with patch("gatewayrag.ingest.extract.pypdf.PdfReader", side_effect=OSError("bad")):
        report = IngestPipeline(store, embedder, provider="rede").ingest_directory(docs)

    assert report.documents == 1
    assert len(report.failures) == 1
    assert report.failures[0][0].endswith("a-broken.pdf")
    [chunk] = _all_chunks(store, "rede")
    assert chunk.tags == ["sandbox"]


def test_ingest_directory_embedding_failure_recorded(tmp_path, store):
    docs = tmp_path / "docs"
    docs.mkdir()
    (docs / "a.md").write_text("QUOTA trigger")
    (docs / "b.md").write_text("fine")

    embedder = FakeEmbedder(fail_on="QUOTA")
    report = IngestPipeline(store, embedder, provider="rede").ingest_directory(docs)

    assert report.documents == 1
    assert report.failures == [(str(docs / "a.md"), "embedding call failed: quota")]


def test_ingest_directory_skips_empty_files(tmp_path, store, embedder):
    (tmp_path / "empty.txt").write_text("   ")
    report = IngestPipeline(store, embedder, provider="rede").ingest_directory(tmp_path)
    assert report.documents == 0
    assert report.failures == []


def test_ingest_directory_missing_root_raises(tmp_path, store, embedder):
    with pytest.raises(FileNotFoundError):
        IngestPipeline(store, embedder, provider="rede").ingest_directory(tmp_path / "nope")


def test_ingest_directory_long_single_line_file(tmp_path, store, embedder):
    (tmp_path / "pagamentos.txt").write_text("a" * 5000)

    report = IngestPipeline(store, embedder, provider="rede").ingest_directory(tmp_path)

    assert report.documents == 1
    assert report.chunks == 3
    chunks = sorted(_all_chunks(store, "rede"), key=lambda c: c.id)
    assert [len(c.content) for c in chunks] == [2000, 2000, 1000]
    assert [c.title for c in chunks] == [
        "pagamentos (parte 1)",
        "pagamentos (parte 2)",
        "pagamentos (parte 3)",
    ]


def test_ingest_directory_partial_failure_counts_stored_chunks(tmp_path, store):
    (tmp_path / "doc.txt").write_text("a" * 5000)

    report = IngestPipeline(
        store, FailingOnCallEmbedder(2), provider="rede"
    ).ingest_directory(tmp_path)

    stored = _all_chunks(store, "rede")
    assert len(stored) == 1
    assert report.chunks == len(stored)
    assert report.documents == 0
    assert report.failures == [(str(tmp_path / "doc.txt"), "embedding call failed: boom")]


def test_store_document_fills_caller_ids_before_failure(store):
    pipeline = IngestPipeline(store, FailingOnCallEmbedder(3), provider="rede")
    ids: list[int] = []
    with pytest.raises(EmbeddingError):
        pipeline.store_document("Guia", "a" * 5000, ids=ids)
    assert [c.id for c in store.get_by_ids(ids)] == ids
    assert len(ids) == 2


# ------------------------------------------------------------------
# ingest_site
# ------------------------------------------------------------------

def test_ingest_site_uses_url_titles_and_source_urls(store, embedder):
    base = "https://developer.example.com/e-rede"
    crawler = MagicMock()
    crawler.crawl.return_value = iter([
        CrawledPage(url=base, html="<h1>Bem-vindo</h1>"),
        CrawledPage(url=f"{base}/3ds-flow", html="<p>Fluxo 3DS</p>"),
        CrawledPage(url=f"{base}/blank", html="<script>only()</script>"),
    ])

    report = IngestPipeline(store, embedder, provider="rede").ingest_site(base, 10, crawler)

    crawler.crawl.assert_called_once_with(base, 10)
    assert report.documents == 2
    chunks = sorted(_all_chunks(store, "rede"), key=lambda c: c.id)
    assert [(c.title, c.source_url) for c in chunks] == [
        ("Overview", base),
        ("3ds flow", f"{base}/3ds-flow"),
    ]
    assert chunks[1].section_type is SectionType.THREE_DS
