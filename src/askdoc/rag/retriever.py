"""Dense retriever: embed the question, scan the index, join the top-k texts.

The joined context is handed verbatim to the answer generator
(``askdoc.rag.llm_client.stream_answer``).
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from askdoc.db.index import VectorIndex
from askdoc.db.models import Segment, TaskType
from askdoc.errors import EmbeddingError
from askdoc.rag.llm_client import BaseEmbedder


@dataclass
class RetrieverConfig:
    """Configuration for the retriever.

    Attributes:
        top_k: Maximum number of segments placed in the context.
        separator: Text placed between segments in the joined context.
    """

    top_k: int = 5
    separator: str = "\n---\n"


async def retrieve(
    question: str,
    index: VectorIndex,
    embedder: BaseEmbedder,
    config: RetrieverConfig,
) -> list[Segment]:
    """Return the ``top_k`` segments most similar to *question*, best first.

    An empty index returns ``[]`` without calling the embedder.

    Raises:
        EmbeddingError: If the question could not be embedded.
    """
    if not index.is_ready():
        return []

    try:
        query_vector = await embedder.embed_one(question, TaskType.RETRIEVAL_QUERY)
    except EmbeddingError:
        raise
    except Exception as exc:
        raise EmbeddingError(f"Failed to embed the question: {exc}") from exc

    segments = index.search(query_vector, config.top_k)
    logger.debug("Retrieved segments {} for question", [s.id for s in segments])
    return segments


async def answer_context(
    question: str,
    index: VectorIndex,
    embedder: BaseEmbedder,
    config: RetrieverConfig,
) -> str:
    """Return the context block for *question*: top-k texts joined in rank order.

    Returns ``""`` when the index is empty; the generator decides how to
    answer without context.
    """
    segments = await retrieve(question, index, embedder, config)
    return config.separator.join(s.text for s in segments)
