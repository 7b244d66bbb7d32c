"""Document session: one loaded document, its index and the chat about it.

State machine:
  INITIAL ──load()──▶ PROCESSING ──ok──▶ READY ──ask()…
                           └──error──▶ ERROR
  any ──reset()──▶ INITIAL

Loading a new document always starts from an empty index. An in-flight
load can be abandoned by cancelling its task and calling ``reset()``;
segments committed so far are dropped with the index contents.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from enum import Enum
from pathlib import Path

from loguru import logger

from askdoc.config import AskdocConfig
from askdoc.db.index import VectorIndex
from askdoc.db.models import ChatMessage, Progress
from askdoc.errors import AskdocError, InvalidInputError
from askdoc.ingest.embedding_writer import EmbeddingConfig, EmbeddingWriter
from askdoc.ingest.pdf import PdfChunker
from askdoc.ingest.plaintext import PlainTextChunker
from askdoc.rag.llm_client import BaseEmbedder, LiteLLMEmbedder, stream_answer
from askdoc.rag.prompts import DEFAULT_SYSTEM_PROMPT
from askdoc.rag.retriever import RetrieverConfig, answer_context

_PDF_EXTS = {".pdf"}
_TEXT_EXTS = {".txt", ".md", ".markdown", ".rst", ".text"}
SUPPORTED_EXTENSIONS = frozenset(_PDF_EXTS | _TEXT_EXTS)


class SessionState(Enum):
    INITIAL = "initial"
    PROCESSING = "processing"
    READY = "ready"
    ERROR = "error"


class DocumentSession:
    """Owns the VectorIndex and embedder for one document at a time.

    Args:
        config:   Merged configuration (defaults if omitted).
        embedder: Embedding adapter; a LiteLLMEmbedder built from
            ``config.embedding`` if omitted.
        index:    VectorIndex to populate; a fresh one if omitted.
        sleep:    Pacing awaitable passed to the EmbeddingWriter.
    """

    def __init__(
        self,
        config: AskdocConfig | None = None,
        embedder: BaseEmbedder | None = None,
        index: VectorIndex | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.config = config or AskdocConfig()
        emb = self.config.embedding
        self.index = index if index is not None else VectorIndex(dimensions=emb.dimensions)
        self.embedder = embedder or LiteLLMEmbedder(
            model=emb.model, num_retries=emb.num_retries, timeout=emb.timeout
        )
        self._sleep = sleep
        self.state = SessionState.INITIAL
        self.file_name = ""
        self.error: str | None = None
        self.progress = Progress(0, "")
        self.history: list[ChatMessage] = []

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Drop the document, its segments and the chat history."""
        self.index.reset()
        self.state = SessionState.INITIAL
        self.file_name = ""
        self.error = None
        self.progress = Progress(0, "")
        self.history = []

    async def load(
        self,
        path: str | Path,
        on_progress: Callable[[Progress], None] | None = None,
    ) -> int:
        """Extract, chunk and embed the document at *path*. Returns the segment count.

        Raises:
            InvalidInputError: Unsupported file type (state unchanged), or an
                unreadable file / bad chunking settings (state ERROR).
            EmbeddingError: An embedding batch failed (state ERROR; earlier
                batches stay searchable).
        """
        p = Path(path)
        ext = p.suffix.lower()
        if ext not in SUPPORTED_EXTENSIONS:
            raise InvalidInputError(
                f"Unsupported file type: '{p.name}'",
                hint="Please select a PDF file (or a plain-text file: "
                + ", ".join(sorted(_TEXT_EXTS))
                + ").",
            )

        self.reset()
        self.file_name = p.name
        self.state = SessionState.PROCESSING

        def report(progress: Progress) -> None:
            self.progress = progress
            if on_progress is not None:
                on_progress(progress)

        try:
            chunks = self._chunk(p, ext, report)
            logger.info("{}: {} chunks", p.name, len(chunks))
            writer = EmbeddingWriter(
                self.index,
                self.embedder,
                EmbeddingConfig(
                    batch_size=self.config.embedding.batch_size,
                    batch_delay=self.config.embedding.batch_delay,
                ),
                sleep=self._sleep,
            )
            count = await writer.ingest(chunks, on_progress=report)
        except AskdocError as exc:
            self.state = SessionState.ERROR
            self.error = exc.message
            logger.error("Processing {} failed: {}", p.name, exc.message)
            raise
        except Exception as exc:
            self.state = SessionState.ERROR
            self.error = repr(exc)
            logger.exception("Unexpected failure while processing {}", p.name)
            raise

        report(Progress(100, "Processing complete!"))
        self.state = SessionState.READY
        return count

    def _chunk(self, path: Path, ext: str, report: Callable[[Progress], None]) -> list[str]:
        size = self.config.chunking.chunk_size
        overlap = self.config.chunking.overlap
        if ext in _PDF_EXTS:
            return PdfChunker(size, overlap).chunk("", path=str(path), on_progress=report)

        report(Progress(0, "Reading file..."))
        try:
            content = path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise InvalidInputError(
                f"Could not read '{path}': {exc}",
                hint="Check that the file exists and is readable.",
            ) from exc
        return PlainTextChunker(size, overlap).chunk(content, path=str(path))

    # ------------------------------------------------------------------
    # Questions
    # ------------------------------------------------------------------

    async def ask(self, question: str) -> AsyncIterator[str]:
        """Answer *question* from the loaded document, yielding text fragments.

        Both the question and the accumulated answer are appended to
        ``history``. On failure the assistant entry holds the error text and
        the error is re-raised.

        Raises:
            InvalidInputError: Blank question or no document ready.
            EmbeddingError: The question could not be embedded.
            GenerationError: The answer could not be generated.
        """
        if not question.strip():
            raise InvalidInputError("The question is empty.", hint="Type a question first.")
        if self.state is not SessionState.READY:
            raise InvalidInputError(
                "No document is ready for questions.",
                hint="Load a document first.",
            )

        self.history.append(ChatMessage(role="user", content=question))
        answer = ChatMessage(role="assistant", content="")
        self.history.append(answer)

        gen = self.config.generation
        try:
            context = await answer_context(
                question,
                self.index,
                self.embedder,
                RetrieverConfig(
                    top_k=self.config.retrieval.top_k,
                    separator=self.config.retrieval.separator,
                ),
            )
            async for fragment in stream_answer(
                gen.model,
                context,
                question,
                system_prompt=gen.system_prompt or DEFAULT_SYSTEM_PROMPT,
                temperature=gen.temperature,
            ):
                answer.content += fragment
                yield fragment
        except AskdocError as exc:
            error_text = f"{exc.message}\n{exc.hint}".strip()
            if answer.content:
                self.history.append(ChatMessage(role="assistant", content=error_text))
            else:
                answer.content = error_text
            raise
