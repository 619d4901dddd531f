"""Keyword heuristics for a chunk's section type and topical tags.

Both classifications are ordered rule tables evaluated against the
lower-cased chunk text. Portuguese and English keywords are listed side by
side. Rule order is observable behaviour: the first matching section rule
wins, and tags are emitted in table order.
"""

from __future__ import annotations

from dataclasses import dataclass

from gatewayrag.db.models import SectionType


@dataclass(frozen=True)
class KeywordRule:
    """Matches when any of *any_of* occurs, or when every group in *all_of*
    has at least one keyword present."""

    any_of: tuple[str, ...] = ()
    all_of: tuple[tuple[str, ...], ...] = ()

    def matches(self, text: str) -> bool:
        if any(keyword in text for keyword in self.any_of):
            return True
        return bool(self.all_of) and all(
            any(keyword in text for keyword in group) for group in self.all_of
        )


_THREE_DS = KeywordRule(any_of=("3ds", "3-d secure"))
_AUTHORIZATION = KeywordRule(any_of=("authorization", "autorização"))

SECTION_RULES: tuple[tuple[SectionType, KeywordRule], ...] = (
    (SectionType.THREE_DS, _THREE_DS),
    (SectionType.AUTH, _AUTHORIZATION),
    (
        SectionType.ENDPOINT,
        KeywordRule(
            any_of=("endpoint",),
            all_of=(("http",), ("post", "get", "put", "delete")),
        ),
    ),
    (SectionType.ERRORS, KeywordRule(any_of=("error code", "código de erro"))),
)

TAG_RULES: tuple[tuple[tuple[str, ...], KeywordRule], ...] = (
    (("3ds", "auth"), _THREE_DS),
    (("authorization",), _AUTHORIZATION),
    (("capture",), KeywordRule(any_of=("capture", "captura"))),
    (("refund",), KeywordRule(any_of=("refund", "estorno"))),
    (("cancel",), KeywordRule(any_of=("cancel", "void"))),
    (("webhook",), KeywordRule(any_of=("webhook", "notificação"))),
    (("sandbox",), KeywordRule(any_of=("sandbox",))),
    (("transaction",), KeywordRule(any_of=("transaction", "transação"))),
)


def detect_section_type(text: str) -> SectionType:
    s = text.lower()
    for section, rule in SECTION_RULES:
        if rule.matches(s):
            return section
    return SectionType.OVERVIEW


def detect_tags(text: str) -> list[str]:
    s = text.lower()
    tags: list[str] = []
    for labels, rule in TAG_RULES:
        if rule.matches(s):
            for label in labels:
                if label not in tags:
                    tags.append(label)
    return tags


def classify(text: str) -> tuple[SectionType, list[str]]:
    """Return ``(section_type, tags)`` for *text*. Pure and deterministic."""
    return detect_section_type(text), detect_tags(text)
