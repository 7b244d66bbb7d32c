"""askdoc in-memory vector index."""

from askdoc.db.index import MISMATCH_SIMILARITY, VectorIndex, cosine_similarity
from askdoc.db.models import ChatMessage, Progress, Segment, TaskType

__all__ = [
    "ChatMessage",
    "MISMATCH_SIMILARITY",
    "Progress",
    "Segment",
    "TaskType",
    "VectorIndex",
    "cosine_similarity",
]
