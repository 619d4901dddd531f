"""Error taxonomy of the answering service.

Callers map these to transport status codes: validation and resolution
errors are client errors, collaborator errors are upstream failures.
"""

from __future__ import annotations


class AskError(Exception):
    """Base class for every error raised while answering a question."""


class InvalidRequestError(AskError, ValueError):
    """The request is malformed (e.g. empty question)."""


class ProviderNotResolvedError(AskError):
    """No provider was given and none could be inferred from the question."""


class CollaboratorError(AskError):
    """An embedding, generation or store call failed."""


class EmbeddingError(CollaboratorError):
    pass


class GenerationError(CollaboratorError):
    pass


class DeadlineExceededError(AskError, TimeoutError):
    """The request ran out of its wall-clock budget."""
