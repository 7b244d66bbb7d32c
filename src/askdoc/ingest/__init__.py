"""askdoc ingest pipeline: chunkers, PDF extraction, batched embedding writer."""

from askdoc.ingest.base import BaseChunker, split_text
from askdoc.ingest.embedding_writer import EmbeddingConfig, EmbeddingWriter
from askdoc.ingest.pdf import PdfChunker, extract_pdf_text
from askdoc.ingest.plaintext import PlainTextChunker

__all__ = [
    "BaseChunker",
    "EmbeddingConfig",
    "EmbeddingWriter",
    "PdfChunker",
    "PlainTextChunker",
    "extract_pdf_text",
    "split_text",
]
