"""Document text extraction — HTML via BeautifulSoup, PDF via pypdf, text passthrough.

HTML keeps text nodes only; ``script``, ``style`` and ``noscript`` subtrees are
removed before walking. PDF text is taken page by page, as pypdf returns it.
"""

from __future__ import annotations

import io
from enum import Enum
from pathlib import Path

import pypdf
from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup
from bs4.element import PreformattedString
from pypdf.errors import PyPdfError

from gatewayrag.ingest.sanitize import sanitize

_SKIP_TAGS = ("script", "style", "noscript")


class DocumentKind(str, Enum):
    HTML = "html"
    PDF = "pdf"
    TEXT = "text"


# Extensions accepted by the local directory walk.
EXTENSION_KINDS: dict[str, DocumentKind] = {
    ".md": DocumentKind.TEXT,
    ".txt": DocumentKind.TEXT,
    ".html": DocumentKind.HTML,
    ".htm": DocumentKind.HTML,
    ".pdf": DocumentKind.PDF,
}


class ExtractionError(RuntimeError):
    """Raised when a document cannot be converted to text."""


def kind_for_path(path: Path | str) -> DocumentKind | None:
    """Return the DocumentKind for *path*'s extension, or None if unsupported."""
    return EXTENSION_KINDS.get(Path(path).suffix.lower())


def extract(data: bytes | str, kind: DocumentKind) -> str:
    """Convert a raw document to plain text.

    Raises:
        ExtractionError: If a PDF cannot be read. HTML never raises; markup the
            parser rejects yields an empty string.
    """
    if kind is DocumentKind.PDF:
        raw = data.encode("utf-8") if isinstance(data, str) else data
        return extract_pdf_text(raw)
    if kind is DocumentKind.HTML:
        return extract_html_text(sanitize(data))
    return sanitize(data)


def extract_html_text(html: str) -> str:
    """Return the visible text of *html*, one trimmed text node per line.

    Lines that are blank or a single character long are dropped.
    """
    try:
        soup = BeautifulSoup(html, "html.parser")
    except ParserRejectedMarkup:
        return ""

    for tag in soup.find_all(_SKIP_TAGS):
        tag.decompose()

    lines: list[str] = []
    for node in soup.find_all(string=True):
        # Comments, doctype, CDATA and processing instructions are not content.
        if isinstance(node, PreformattedString):
            continue
        text = node.strip()
        if text:
            lines.extend(text.split("\n"))

    return "\n".join(
        stripped for stripped in (line.strip() for line in lines) if len(stripped) > 1
    )


def extract_pdf_text(data: bytes) -> str:
    """Extract the embedded text of every page in the PDF *data*.

    Pages with no text layer (scanned images) contribute nothing.
    """
    try:
        reader = pypdf.PdfReader(io.BytesIO(data))
        parts = [page.extract_text() or "" for page in reader.pages]
    except (PyPdfError, OSError, ValueError) as exc:
        raise ExtractionError(f"Failed to read PDF: {exc}") from exc
    return sanitize("\n".join(parts).strip())
