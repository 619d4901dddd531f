"""LiteLLM-backed Embedder and Generator with API key validation.

All embedding and generation calls route through this module. The default
models are Gemini (``gemini/text-embedding-004`` at 768 dimensions and
``gemini/gemini-2.5-flash``); any LiteLLM ``provider/model`` string works.
The remaining request budget is passed to LiteLLM as ``timeout`` so a slow
upstream call is aborted instead of blocking the request.
"""

from __future__ import annotations

import os
from collections.abc import Sequence

import litellm

from gatewayrag.db.models import DocChunk
from gatewayrag.db.vectors import EMBEDDING_DIMS
from gatewayrag.rag.errors import DeadlineExceededError, EmbeddingError, GenerationError
from gatewayrag.rag.prompt import (
    BODY_MAX_CHARS,
    MAX_CONTEXT_CHUNKS,
    TITLE_MAX_CHARS,
    build_prompt,
    build_user_message,
)

# Disable LiteLLM verbose logging unless explicitly enabled
litellm.suppress_debug_info = True
litellm.set_verbose = False  # type: ignore[assignment]

DEFAULT_EMBEDDING_MODEL = "gemini/text-embedding-004"
DEFAULT_GENERATION_MODEL = "gemini/gemini-2.5-flash"


# ------------------------------------------------------------------
# Provider → env var mapping for API key validation
# ------------------------------------------------------------------

_PROVIDER_ENV: dict[str, tuple[str, ...] | None] = {
    "gemini": ("GOOGLE_API_KEY", "GEMINI_API_KEY"),
    "vertex_ai": None,  # Uses application default credentials
    "openai": ("OPENAI_API_KEY",),
    "anthropic": ("ANTHROPIC_API_KEY",),
    "azure": ("AZURE_API_KEY",),
    "cohere": ("COHERE_API_KEY",),
    "mistral": ("MISTRAL_API_KEY",),
    "groq": ("GROQ_API_KEY",),
    "ollama": None,  # Local, no key required
    "ollama_chat": None,
}


def _provider_of(model: str) -> str:
    return model.split("/")[0].lower() if "/" in model else "openai"


def resolve_api_key(model: str) -> str | None:
    """Return the first configured API key for *model*'s provider, if any."""
    env_vars = _PROVIDER_ENV.get(_provider_of(model))
    if not env_vars:
        return None
    for env_var in env_vars:
        if value := os.getenv(env_var):
            return value
    return None


def validate_api_key(model: str) -> None:
    """Check that an API key env var is set for *model*.

    Args:
        model: LiteLLM model string in 'provider/model' format.

    Raises:
        EnvironmentError: If the required key is missing from environment.
    """
    provider = _provider_of(model)
    env_vars = _PROVIDER_ENV.get(provider)

    if env_vars is None:
        return  # No key required (e.g. ollama) or unknown to this table

    if resolve_api_key(model) is None:
        raise EnvironmentError(
            f"API key not found for provider '{provider}'. "
            f"Set the {' or '.join(env_vars)} environment variable."
        )


def normalize_whitespace(text: str) -> str:
    """Collapse every run of whitespace into a single space and trim."""
    return " ".join(text.split())


class LiteLLMEmbedder:
    """Embed text with ``litellm.embedding()``.

    Args:
        model: LiteLLM embedding model string (provider/model format).
        dimensions: Required vector length; other lengths are rejected.
        num_retries: LiteLLM transport retries per call.
    """

    def __init__(
        self,
        model: str = DEFAULT_EMBEDDING_MODEL,
        dimensions: int = EMBEDDING_DIMS,
        num_retries: int = 0,
    ) -> None:
        self.model = model
        self.dimensions = dimensions
        self.num_retries = num_retries

    def embed(self, text: str, *, timeout: float | None = None) -> list[float]:
        clean = normalize_whitespace(text)
        if not clean:
            raise EmbeddingError("empty text for embedding")

        try:
            response = litellm.embedding(
                model=self.model,
                input=[clean],
                dimensions=self.dimensions,
                api_key=resolve_api_key(self.model),
                timeout=timeout,
                num_retries=self.num_retries,
            )
        except litellm.exceptions.Timeout as exc:
            if timeout is not None:
                raise DeadlineExceededError("embedding call exceeded the request deadline") from exc
            raise EmbeddingError(f"embedding call timed out: {exc}") from exc
        except Exception as exc:
            raise EmbeddingError(f"embedding call failed: {exc}") from exc

        if not response.data:
            raise EmbeddingError("no embeddings returned")
        values = list(response.data[0]["embedding"])
        if len(values) != self.dimensions:
            raise EmbeddingError(
                f"unexpected embedding size {len(values)} (expected {self.dimensions})"
            )
        return values


class LiteLLMGenerator:
    """Answer questions from retrieved chunks with ``litellm.completion()``.

    Args:
        model: LiteLLM chat model string (provider/model format).
        max_tokens: Maximum output tokens.
        temperature: Sampling temperature (0 = deterministic).
        max_context_chunks: Chunks rendered into the prompt.
        title_max_chars: Title truncation length in the context block.
        body_max_chars: Body truncation length in the context block.
        num_retries: LiteLLM transport retries per call.
    """

    def __init__(
        self,
        model: str = DEFAULT_GENERATION_MODEL,
        max_tokens: int = 2048,
        temperature: float = 0.0,
        max_context_chunks: int = MAX_CONTEXT_CHUNKS,
        title_max_chars: int = TITLE_MAX_CHARS,
        body_max_chars: int = BODY_MAX_CHARS,
        num_retries: int = 0,
    ) -> None:
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.max_context_chunks = max_context_chunks
        self.title_max_chars = title_max_chars
        self.body_max_chars = body_max_chars
        self.num_retries = num_retries

    def generate(
        self,
        question: str,
        chunks: Sequence[DocChunk],
        provider: str,
        lang: str,
        *,
        timeout: float | None = None,
    ) -> str:
        prompt = build_prompt(
            provider,
            chunks,
            lang,
            max_chunks=self.max_context_chunks,
            title_max_chars=self.title_max_chars,
            body_max_chars=self.body_max_chars,
        )
        messages = [
            {"role": "system", "content": prompt.system},
            {"role": "user", "content": build_user_message(question, prompt.context)},
        ]

        try:
            response = litellm.completion(
                model=self.model,
                messages=messages,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                api_key=resolve_api_key(self.model),
                timeout=timeout,
                num_retries=self.num_retries,
            )
        except litellm.exceptions.Timeout as exc:
            if timeout is not None:
                raise DeadlineExceededError("generation call exceeded the request deadline") from exc
            raise GenerationError(f"generation call timed out: {exc}") from exc
        except Exception as exc:
            raise GenerationError(f"generation call failed: {exc}") from exc

        text = (response.choices[0].message.content or "").strip()
        if not text:
            raise GenerationError("model returned empty text")
        return text
