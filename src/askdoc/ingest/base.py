"""Base chunker interface and the fixed-window splitter."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod

from askdoc.errors import InvalidInputError

# Share of the 0-100 progress scale reserved for text extraction; embedding
# reports from here upward.
EXTRACTION_SPAN = 15


def split_text(text: str, size: int, overlap: int) -> list[str]:
    """Split *text* into fixed-width character windows that overlap.

    The window start advances by ``size - overlap`` from 0 until it reaches
    the end of *text*; the last window may be shorter than *size*. Windows
    are returned unstripped so offsets stay exact, but windows that are
    whitespace-only are dropped.

    Raises:
        InvalidInputError: Unless ``size > overlap >= 0``.
    """
    if overlap < 0:
        raise InvalidInputError(
            f"chunk overlap must be >= 0, got {overlap}",
            hint="Set chunking.overlap to 0 or a positive number of characters.",
        )
    if size <= overlap:
        raise InvalidInputError(
            f"chunk size ({size}) must be greater than overlap ({overlap})",
            hint="Increase chunking.chunk_size or decrease chunking.overlap.",
        )

    step = size - overlap
    segments: list[str] = []
    for start in range(0, len(text), step):
        segment = text[start : start + size]
        if segment.strip():
            segments.append(segment)
    return segments


class BaseChunker(ABC):
    """Abstract base for document chunkers.

    Sizes are in characters of the extracted text, not tokens.
    """

    def __init__(self, chunk_size: int = 1000, overlap: int = 200) -> None:
        if overlap < 0 or chunk_size <= overlap:
            raise InvalidInputError(
                f"invalid chunking: chunk_size={chunk_size}, overlap={overlap}",
                hint="chunk_size must be greater than overlap, and overlap must be >= 0.",
            )
        self.chunk_size = chunk_size
        self.overlap = overlap

    @abstractmethod
    def chunk(self, content: str, path: str = "") -> list[str]:
        """Split a document into text segments.

        Args:
            content: Full decoded text of the document (ignored by chunkers
                that read *path* themselves).
            path: Path of the source file.

        Returns:
            Ordered list of non-blank segments.
        """

    def _split(self, text: str) -> list[str]:
        return split_text(text, self.chunk_size, self.overlap)


def scaled_percentage(done: int, total: int, start: int = 0, span: int = 100) -> int:
    """Map ``done / total`` onto ``[start, start + span]``, rounding halves up."""
    if total <= 0:
        return start + span
    return start + math.floor(span * done / total + 0.5)
