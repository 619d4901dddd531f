"""Provider and reply-language resolution for incoming questions.

Both resolvers are ordered rule tables; the first match wins. The order of
PROVIDER_RULES is observable: an "entrepay" mention beats any Rede variant,
and "rede" itself is the broadest Rede keyword, so it is checked last.
"""

from __future__ import annotations

from langdetect import DetectorFactory, detect
from langdetect.lang_detect_exception import LangDetectException

from gatewayrag.db.models import PROVIDER_ENTREPAY, PROVIDER_REDE

# Make langdetect deterministic across calls.
DetectorFactory.seed = 0

PROVIDER_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    (PROVIDER_ENTREPAY, ("entrepay",)),
    (PROVIDER_REDE, ("e-rede", "erede", "e rede", "rede")),
)

AUTO_LANGUAGE = "auto"
DEFAULT_LANGUAGE = "pt"

# langdetect code → reply language
DETECTED_LANGUAGES: dict[str, str] = {
    "pt": "pt",
    "en": "en",
    "es": "es",
}


def resolve_provider(explicit: str | None, question: str) -> str | None:
    """Return the provider for a question, or None when it cannot be inferred.

    An explicit non-empty provider always wins over keyword inference.
    """
    if explicit is not None and explicit.strip():
        return explicit.strip()

    q = question.lower()
    for provider, keywords in PROVIDER_RULES:
        if any(keyword in q for keyword in keywords):
            return provider
    return None


def resolve_language(explicit: str | None, question: str) -> str:
    """Return the reply language code.

    An explicit value other than "" or "auto" is honoured as given;
    otherwise the language is detected from *question*.
    """
    lang = (explicit or "").strip().lower()
    if lang and lang != AUTO_LANGUAGE:
        return lang
    return detect_language(question)


def detect_language(text: str) -> str:
    """Detect *text*'s language as "pt", "en" or "es"; anything else is "pt"."""
    try:
        code = detect(text)
    except LangDetectException:
        return DEFAULT_LANGUAGE
    return DETECTED_LANGUAGES.get(code, DEFAULT_LANGUAGE)
