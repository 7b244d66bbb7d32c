"""PDF chunker: page-by-page text extraction via pypdf."""

from __future__ import annotations

from collections.abc import Callable

import pypdf
from loguru import logger
from pypdf.errors import PdfReadError

from askdoc.db.models import Progress
from askdoc.errors import InvalidInputError
from askdoc.ingest.base import EXTRACTION_SPAN, BaseChunker, scaled_percentage


def extract_pdf_text(
    path: str,
    on_progress: Callable[[Progress], None] | None = None,
) -> str:
    """Extract the text of every page in the PDF at *path*.

    Each page's text is followed by a newline. Pages without a text layer
    contribute an empty line. Progress runs from 0 to ``EXTRACTION_SPAN``.

    Raises:
        InvalidInputError: If the file cannot be opened or parsed as a PDF.
    """
    report = on_progress or (lambda _p: None)
    report(Progress(0, "Reading PDF..."))

    try:
        reader = pypdf.PdfReader(path)
        pages = reader.pages
        n_pages = len(pages)
    except (OSError, PdfReadError) as exc:
        raise InvalidInputError(
            f"Could not read PDF '{path}': {exc}",
            hint="Check that the file is a valid, unencrypted PDF.",
        ) from exc

    logger.debug("Extracting text from {} ({} pages)", path, n_pages)
    parts: list[str] = []
    for i, page in enumerate(pages, start=1):
        try:
            text = page.extract_text() or ""
        except Exception as exc:
            raise InvalidInputError(
                f"Could not extract text from page {i} of '{path}': {exc!r}",
                hint="The PDF may be damaged. Try re-saving or re-exporting it.",
            ) from exc
        parts.append(text + "\n")
        report(
            Progress(
                scaled_percentage(i, n_pages, span=EXTRACTION_SPAN),
                f"Reading page {i}/{n_pages}...",
            )
        )
    return "".join(parts)


class PdfChunker(BaseChunker):
    """Split a PDF document into overlapping character windows.

    Strategy:
    - Extract text page-by-page via ``pypdf.PdfReader``.
    - Concatenate all page text into one string, then apply the
      fixed-window splitter (same algorithm as PlainTextChunker).
    """

    def chunk(
        self,
        content: str,
        path: str = "",
        on_progress: Callable[[Progress], None] | None = None,
    ) -> list[str]:
        """*content* is ignored; the PDF is read directly from *path*."""
        text = extract_pdf_text(path, on_progress=on_progress)
        if not text.strip():
            return []
        return self._split(text)
