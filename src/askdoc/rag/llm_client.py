"""LiteLLM client wrapper: embedding adapter, streamed generation, API key checks.

All embedding and generation calls route through this module. LiteLLM's
built-in retry is used per call (``num_retries``); provider failures are
translated into askdoc error kinds so callers never see raw LiteLLM
exceptions:

  rate limit / RESOURCE_EXHAUSTED  → QuotaExceededError
  any other embedding failure      → EmbeddingError
  any generation failure           → GenerationError
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence

import litellm
from loguru import logger

from askdoc.db.models import TaskType
from askdoc.errors import EmbeddingError, GenerationError, QuotaExceededError
from askdoc.rag.prompts import DEFAULT_SYSTEM_PROMPT, build_messages

# Disable LiteLLM verbose logging unless explicitly enabled
litellm.suppress_debug_info = True
litellm.set_verbose = False  # type: ignore[assignment]


# ------------------------------------------------------------------
# Provider → env var mapping for API key validation
# ------------------------------------------------------------------

_PROVIDER_ENV: dict[str, str | None] = {
    "gemini": "GEMINI_API_KEY",
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "azure": "AZURE_API_KEY",
    "cohere": "COHERE_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "vertex_ai": None,  # Application default credentials
    "ollama": None,  # Local, no key required
    "ollama_chat": None,
}

# Providers whose embedding endpoint understands a retrieval task type.
_TASK_TYPE_PROVIDERS = frozenset({"gemini", "vertex_ai"})

# Lowercased phrases of an exhausted quota. Not bare "quota": that also
# appears in permission errors such as "requires a quota project".
_QUOTA_MARKERS = (
    "resource_exhausted",
    "quota exceeded",
    "exceeded your current quota",
    "rate limit",
)


def provider_of(model: str) -> str:
    """Return the provider prefix of a 'provider/model' string ('openai' if none)."""
    return model.split("/")[0].lower() if "/" in model else "openai"


def validate_api_key(model: str) -> None:
    """Check that the required API key env var is set for *model*.

    Args:
        model: LiteLLM model string in 'provider/model' format.

    Raises:
        EnvironmentError: If the required key is missing from environment.
    """
    provider = provider_of(model)
    env_var = _PROVIDER_ENV.get(provider, f"{provider.upper()}_API_KEY")

    if env_var is None:
        return

    if not os.getenv(env_var):
        raise EnvironmentError(
            f"API key not found for provider '{provider}'. "
            f"Set the {env_var} environment variable."
        )


def is_quota_error(exc: BaseException) -> bool:
    """True if *exc* signals rate limiting or quota exhaustion."""
    if isinstance(exc, litellm.RateLimitError):
        return True
    text = str(exc).lower()
    return any(marker in text for marker in _QUOTA_MARKERS)


# ------------------------------------------------------------------
# Embedding adapter
# ------------------------------------------------------------------


class BaseEmbedder(ABC):
    """Embedding adapter contract consumed by the writer and the retriever.

    ``embed_many`` must return one vector per input text, in input order.
    Implementations raise :class:`EmbeddingError` (or
    :class:`QuotaExceededError`) on failure.
    """

    @abstractmethod
    async def embed_one(self, text: str, task_type: TaskType) -> list[float]:
        """Embed a single text."""

    @abstractmethod
    async def embed_many(
        self, texts: Sequence[str], task_type: TaskType
    ) -> list[list[float]]:
        """Embed *texts* in one provider call."""


class LiteLLMEmbedder(BaseEmbedder):
    """Embedder backed by ``litellm.aembedding()``.

    Args:
        model: LiteLLM embedding model string (provider/model format).
        num_retries: Retries on transient errors (LiteLLM exponential backoff).
        timeout: Per-call timeout in seconds.
    """

    def __init__(
        self,
        model: str = "gemini/text-embedding-004",
        num_retries: int = 2,
        timeout: float = 60.0,
    ) -> None:
        self.model = model
        self.num_retries = num_retries
        self.timeout = timeout

    async def embed_one(self, text: str, task_type: TaskType) -> list[float]:
        vectors = await self.embed_many([text], task_type)
        return vectors[0]

    async def embed_many(
        self, texts: Sequence[str], task_type: TaskType
    ) -> list[list[float]]:
        if not texts:
            return []

        kwargs: dict = {}
        if provider_of(self.model) in _TASK_TYPE_PROVIDERS:
            kwargs["task_type"] = TaskType(task_type).value

        try:
            response = await litellm.aembedding(
                model=self.model,
                input=list(texts),
                num_retries=self.num_retries,
                timeout=self.timeout,
                **kwargs,
            )
        except Exception as exc:
            logger.error("Embedding call to {} failed: {}", self.model, exc)
            if is_quota_error(exc):
                raise QuotaExceededError(f"Embedding quota exceeded: {exc}") from exc
            raise EmbeddingError(f"Failed to generate embeddings: {exc}") from exc

        try:
            vectors = [list(item["embedding"]) for item in response.data]
        except (AttributeError, KeyError, TypeError) as exc:
            raise EmbeddingError("Invalid embedding format received from API.") from exc

        if len(vectors) != len(texts):
            raise EmbeddingError(
                f"Mismatch between number of texts ({len(texts)}) "
                f"and embeddings received ({len(vectors)})."
            )
        return vectors


# ------------------------------------------------------------------
# Generation
# ------------------------------------------------------------------


async def stream_answer(
    model: str,
    context: str,
    question: str,
    system_prompt: str = DEFAULT_SYSTEM_PROMPT,
    temperature: float = 0.2,
    num_retries: int = 2,
) -> AsyncIterator[str]:
    """Stream the answer to *question* grounded in *context*.

    Yields text fragments as the provider produces them. The iterator is
    single-use; call again for a new answer.

    Raises:
        GenerationError: If the call fails before or during streaming.
    """
    messages = build_messages(context, question, system_prompt=system_prompt)
    try:
        response = await litellm.acompletion(
            model=model,
            messages=messages,
            temperature=temperature,
            num_retries=num_retries,
            stream=True,
        )
    except Exception as exc:
        logger.error("Generation call to {} failed: {}", model, exc)
        raise GenerationError(f"Could not get an answer from the AI model: {exc}") from exc

    try:
        async for part in response:
            text = part.choices[0].delta.content or ""
            if text:
                yield text
    except Exception as exc:
        logger.error("Answer stream from {} broke off: {}", model, exc)
        raise GenerationError(f"The answer stream was interrupted: {exc}") from exc
