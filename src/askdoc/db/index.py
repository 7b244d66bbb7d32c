"""In-memory similarity index for the active document.

Exhaustive cosine-similarity scan, O(n·d) per query. Sized for one
document, not a corpus.
"""

from __future__ import annotations

import math
import threading
from collections.abc import Iterable, Sequence

from loguru import logger

from askdoc.db.models import Segment

# Below any real cosine value, so a mismatched vector always ranks last.
MISMATCH_SIMILARITY = -2.0


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return ``dot(a, b) / (|a| * |b|)``.

    Returns ``MISMATCH_SIMILARITY`` when the lengths differ and ``0.0`` when
    either vector has zero magnitude.
    """
    if len(a) != len(b):
        return MISMATCH_SIMILARITY

    dot = 0.0
    mag_a = 0.0
    mag_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        mag_a += x * x
        mag_b += y * y

    if mag_a == 0.0 or mag_b == 0.0:
        return 0.0
    return dot / (math.sqrt(mag_a) * math.sqrt(mag_b))


class VectorIndex:
    """Append-only store of :class:`Segment` answering top-k cosine queries.

    Args:
        dimensions: Expected vector length. Optional; when set, vectors of
            another length are reported as data-integrity warnings. They are
            still stored and simply rank last at query time.
    """

    def __init__(self, dimensions: int | None = None) -> None:
        self.dimensions = dimensions
        self._segments: list[Segment] = []
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._segments)

    def add(self, segments: Iterable[Segment]) -> None:
        new = list(segments)
        if self.dimensions is not None:
            for seg in new:
                if len(seg.vector) != self.dimensions:
                    logger.warning(
                        "Segment {} has {} dimensions, expected {}",
                        seg.id,
                        len(seg.vector),
                        self.dimensions,
                    )
        with self._lock:
            self._segments.extend(new)

    def search(self, query_vector: Sequence[float], k: int) -> list[Segment]:
        """Return the *k* most similar segments, best first."""
        return [seg for seg, _ in self.search_scored(query_vector, k)]

    def search_scored(
        self, query_vector: Sequence[float], k: int
    ) -> list[tuple[Segment, float]]:
        """Like :meth:`search` but each segment is paired with its similarity."""
        with self._lock:
            segments = list(self._segments)
        if not segments or k <= 0:
            return []

        if self.dimensions is not None and len(query_vector) != self.dimensions:
            logger.warning(
                "Query vector has {} dimensions, expected {}",
                len(query_vector),
                self.dimensions,
            )

        scored = [(seg, cosine_similarity(query_vector, seg.vector)) for seg in segments]
        mismatched = sum(1 for seg in segments if len(seg.vector) != len(query_vector))
        if mismatched:
            logger.warning(
                "Vector dimensions do not match the {}-dimension query for {} of {} "
                "segments; ranking them last",
                len(query_vector),
                mismatched,
                len(segments),
            )
        # list.sort is stable with reverse=True: ties keep insertion order.
        scored.sort(key=lambda pair: pair[1], reverse=True)
        return scored[:k]

    def reset(self) -> None:
        with self._lock:
            self._segments = []

    def is_ready(self) -> bool:
        return len(self._segments) > 0
