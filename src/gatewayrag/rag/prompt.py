"""Prompt construction for grounded answers.

The system instruction pins the assistant to the provider's integration
documentation and the reply language. The context block renders the first
``max_chunks`` retrieved chunks in rank order, each truncated to a fixed
size so the prompt stays bounded regardless of top-k.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from gatewayrag.db.models import DocChunk

MAX_CONTEXT_CHUNKS = 10
TITLE_MAX_CHARS = 160
BODY_MAX_CHARS = 1200
_ELLIPSIS = "..."

LANGUAGE_NAMES: dict[str, str] = {
    "pt": "Brazilian Portuguese",
    "en": "English",
    "es": "Spanish",
}
_DEFAULT_LANGUAGE_NAME = LANGUAGE_NAMES["pt"]

_ANSWER_SECTIONS = (
    "Operation flow",
    "Endpoint(s)",
    "Required and optional parameters",
    "Example request/response",
    "Important notes (3DS, capture, refunds, error codes, etc.)",
)


@dataclass
class Prompt:
    system: str
    context: str


def build_prompt(
    provider: str,
    chunks: Sequence[DocChunk],
    lang: str,
    *,
    max_chunks: int = MAX_CONTEXT_CHUNKS,
    title_max_chars: int = TITLE_MAX_CHARS,
    body_max_chars: int = BODY_MAX_CHARS,
) -> Prompt:
    """Return the system instruction and context block for *chunks*."""
    return Prompt(
        system=build_system_instruction(provider, lang),
        context=build_context(
            chunks,
            max_chunks=max_chunks,
            title_max_chars=title_max_chars,
            body_max_chars=body_max_chars,
        ),
    )


def build_system_instruction(provider: str, lang: str) -> str:
    target = LANGUAGE_NAMES.get(lang, _DEFAULT_LANGUAGE_NAME)
    sections = "".join(f"- {s}\n" for s in _ANSWER_SECTIONS)
    return (
        "You are a technical assistant specialized in payment gateway integrations for "
        f"{provider}. "
        f"{target} is the target language for all responses. "
        "Always answer ONLY based on the provided documentation excerpts. "
        "If the answer is not clearly present, say that it is not available in the "
        "indexed documentation. "
        "Do not invent endpoints, URLs, fields or values. "
        "When possible, structure the answer as:\n"
        f"{sections}"
    )


def build_context(
    chunks: Sequence[DocChunk],
    *,
    max_chunks: int = MAX_CONTEXT_CHUNKS,
    title_max_chars: int = TITLE_MAX_CHARS,
    body_max_chars: int = BODY_MAX_CHARS,
) -> str:
    parts: list[str] = []
    for chunk in chunks[:max_chunks]:
        parts.append(
            f"\n[DOC {chunk.id}] title={one_line(chunk.title, title_max_chars)} "
            f"source={chunk.source_url}\n"
        )
        parts.append(truncate(chunk.content, body_max_chars))
        parts.append("\n----\n")
    return "".join(parts)


def build_user_message(question: str, context: str) -> str:
    return (
        f"Question:\n{question.strip()}\n\n"
        f"Relevant documentation excerpts:\n{context}"
    )


def one_line(text: str, max_chars: int = TITLE_MAX_CHARS) -> str:
    """Collapse *text* onto one line and truncate it to *max_chars* + "..."."""
    return truncate(text.replace("\n", " "), max_chars)


def truncate(text: str, max_chars: int) -> str:
    text = text.strip()
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + _ELLIPSIS
