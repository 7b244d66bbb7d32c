"""Domain models for the askdoc in-memory index."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal


class TaskType(str, Enum):
    """Embedding task tag: index-side vs query-side vectors."""

    RETRIEVAL_DOCUMENT = "RETRIEVAL_DOCUMENT"
    RETRIEVAL_QUERY = "RETRIEVAL_QUERY"


@dataclass(frozen=True)
class Segment:
    """One embedded chunk of the active document.

    ``id`` is the chunk's position in the filtered chunk sequence.
    """

    id: int
    text: str
    vector: list[float] = field(repr=False)


@dataclass(frozen=True)
class Progress:
    percentage: int
    message: str


@dataclass
class ChatMessage:
    role: Literal["user", "assistant"]
    content: str
