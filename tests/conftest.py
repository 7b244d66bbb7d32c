"""Shared pytest fixtures."""

from __future__ import annotations

from collections.abc import Callable, Sequence

import pytest
from loguru import logger

from askdoc.db.models import TaskType
from askdoc.rag.llm_client import BaseEmbedder


class FakeEmbedder(BaseEmbedder):
    """Deterministic in-process embedder that records every call."""

    def __init__(self, vector_fn: Callable[[str], list[float]] | None = None) -> None:
        self.calls: list[tuple[list[str], TaskType]] = []
        self._vector_fn = vector_fn or (lambda text: [float(len(text)), 1.0, 0.0])

    async def embed_one(self, text: str, task_type: TaskType) -> list[float]:
        self.calls.append(([text], task_type))
        return self._vector_fn(text)

    async def embed_many(self, texts: Sequence[str], task_type: TaskType) -> list[list[float]]:
        self.calls.append((list(texts), task_type))
        return [self._vector_fn(t) for t in texts]


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def make_embedder() -> type[FakeEmbedder]:
    """The FakeEmbedder class, for tests that need a custom vector function."""
    return FakeEmbedder


@pytest.fixture
def log_records():
    """Capture loguru records emitted during the test."""
    records: list[dict] = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)
