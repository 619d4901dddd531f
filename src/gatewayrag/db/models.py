"""Domain models for the gatewayrag knowledge base."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum

PROVIDER_REDE = "rede"
PROVIDER_ENTREPAY = "entrepay"


class SectionType(str, Enum):
    """Documentation section a chunk belongs to."""

    OVERVIEW = "overview"
    AUTH = "auth"
    ENDPOINT = "endpoint"
    THREE_DS = "3ds"
    ERRORS = "errors"


@dataclass
class DocChunk:
    """A retrievable piece of gateway documentation.

    ``id`` is assigned by the store on insert; ``None`` for unsaved chunks.
    ``source_url`` and ``api_version`` are empty strings when unknown.
    """

    provider: str
    section_type: SectionType
    title: str
    content: str
    source_url: str = ""
    api_version: str = ""
    tags: list[str] = field(default_factory=list)
    created_at: str | None = None
    updated_at: str | None = None
    id: int | None = None

    @property
    def tags_json(self) -> str:
        return json.dumps(self.tags, ensure_ascii=False)
