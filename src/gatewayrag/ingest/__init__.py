"""gatewayrag ingest pipeline — extraction, crawling, chunking, classification."""

from gatewayrag.ingest.chunker import LineChunker, part_titles, split_into_chunks
from gatewayrag.ingest.classifier import classify
from gatewayrag.ingest.crawler import CrawledPage, Crawler, CrawlState
from gatewayrag.ingest.extract import DocumentKind, ExtractionError, extract
from gatewayrag.ingest.pipeline import IngestPipeline, IngestReport
from gatewayrag.ingest.sanitize import sanitize

__all__ = [
    "CrawledPage",
    "Crawler",
    "CrawlState",
    "DocumentKind",
    "ExtractionError",
    "IngestPipeline",
    "IngestReport",
    "LineChunker",
    "classify",
    "extract",
    "part_titles",
    "sanitize",
    "split_into_chunks",
]
