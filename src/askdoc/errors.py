"""Error kinds raised by the askdoc pipeline.

Every error carries a ``hint``: the action the user should take. The CLI
renders both (see ``askdoc.cli.errors``).
"""

from __future__ import annotations


class AskdocError(Exception):
    """Base class for all askdoc pipeline errors."""

    default_hint = ""

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint if hint is not None else self.default_hint


class InvalidInputError(AskdocError, ValueError):
    """Rejected before any work starts (bad chunk sizes, unsupported file, ...)."""


class EmbeddingError(AskdocError, RuntimeError):
    """The embedding call failed or returned malformed data."""

    default_hint = "Check the embedding model and API key, then load the document again."


class QuotaExceededError(EmbeddingError):
    """The provider reported rate-limit or quota exhaustion."""

    default_hint = (
        "API quota exceeded. The document is too large or requests are too "
        "frequent. Wait a minute and try again, or raise embedding.batch_delay."
    )


class GenerationError(AskdocError, RuntimeError):
    """The answer-generation call failed."""

    default_hint = "Could not get an answer from the AI model. Try the question again."
