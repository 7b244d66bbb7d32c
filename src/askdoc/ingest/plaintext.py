"""Plain text chunker: fixed window with overlap."""

from __future__ import annotations

from askdoc.ingest.base import BaseChunker


class PlainTextChunker(BaseChunker):
    """Split plain text into fixed-size character windows with overlap.

    Default: 1000 characters / 200 characters overlap.
    """

    def chunk(self, content: str, path: str = "") -> list[str]:
        if not content.strip():
            return []
        return self._split(content)
