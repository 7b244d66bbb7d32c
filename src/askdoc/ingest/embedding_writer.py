"""Embedding writer: batched, paced embedding of document chunks into the index.

For each batch of at most ``batch_size`` chunks, strictly in sequence:
1. Embed the batch texts with one ``embed_many(..., RETRIEVAL_DOCUMENT)`` call.
2. Check one vector came back per text.
3. Append the batch's Segments to the VectorIndex (searchable immediately).
4. Report progress on the 15-100 band (0-15 belongs to text extraction).
5. Sleep ``batch_delay`` seconds before the next batch, to stay under the
   provider's request-rate ceiling.

A failing batch aborts the run; segments from earlier batches stay indexed.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

from loguru import logger

from askdoc.db.index import VectorIndex
from askdoc.db.models import Progress, Segment, TaskType
from askdoc.errors import EmbeddingError, InvalidInputError
from askdoc.ingest.base import EXTRACTION_SPAN, scaled_percentage
from askdoc.rag.llm_client import BaseEmbedder


@dataclass
class EmbeddingConfig:
    """Configuration for batched embedding.

    Attributes:
        batch_size: Maximum texts per embedding call.
        batch_delay: Seconds to wait between calls; 0 disables pacing.
    """

    batch_size: int = 50
    batch_delay: float = 1.0


class EmbeddingWriter:
    """Embed chunks in sequential batches and append them to *index*.

    Args:
        index:    The VectorIndex that receives the segments.
        embedder: Embedding adapter.
        config:   Batch size and pacing.
        sleep:    Awaitable used for pacing (``asyncio.sleep``).
    """

    def __init__(
        self,
        index: VectorIndex,
        embedder: BaseEmbedder,
        config: EmbeddingConfig | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._index = index
        self._embedder = embedder
        self._config = config or EmbeddingConfig()
        self._sleep = sleep

    async def ingest(
        self,
        chunks: Sequence[str],
        on_progress: Callable[[Progress], None] | None = None,
    ) -> int:
        """Embed *chunks* and add them to the index. Returns the segment count added.

        Raises:
            InvalidInputError: If ``batch_size`` < 1.
            EmbeddingError: If a batch call fails or returns the wrong number
                of vectors (``QuotaExceededError`` for rate limiting).
        """
        batch_size = self._config.batch_size
        if batch_size < 1:
            raise InvalidInputError(
                f"batch_size must be >= 1, got {batch_size}",
                hint="Set embedding.batch_size to a positive number.",
            )

        report = on_progress or (lambda _p: None)
        total = len(chunks)
        if total == 0:
            report(Progress(100, "Nothing to embed."))
            return 0

        n_batches = -(-total // batch_size)
        logger.info("Embedding {} chunks in {} batch(es)", total, n_batches)

        processed = 0
        for offset in range(0, total, batch_size):
            batch = list(chunks[offset : offset + batch_size])
            vectors = await self._embed_batch(batch, offset)

            self._index.add(
                Segment(id=offset + i, text=text, vector=vector)
                for i, (text, vector) in enumerate(zip(batch, vectors))
            )

            processed += len(batch)
            report(
                Progress(
                    scaled_percentage(
                        processed, total, start=EXTRACTION_SPAN, span=100 - EXTRACTION_SPAN
                    ),
                    f"Embedding chunk {processed}/{total}...",
                )
            )

            if processed < total and self._config.batch_delay > 0:
                await self._sleep(self._config.batch_delay)

        return processed

    async def _embed_batch(self, batch: list[str], offset: int) -> list[list[float]]:
        """One adapter call for *batch*, with the vector count checked."""
        try:
            vectors = await self._embedder.embed_many(batch, TaskType.RETRIEVAL_DOCUMENT)
        except EmbeddingError:
            raise
        except Exception as exc:
            raise EmbeddingError(
                f"Embedding failed for chunks {offset}-{offset + len(batch) - 1}: {exc}"
            ) from exc

        if len(vectors) != len(batch):
            raise EmbeddingError(
                f"Mismatch between number of texts ({len(batch)}) and embeddings "
                f"received ({len(vectors)}) for chunks starting at {offset}."
            )
        logger.debug("Embedded chunks {}-{}", offset, offset + len(batch) - 1)
        return vectors
