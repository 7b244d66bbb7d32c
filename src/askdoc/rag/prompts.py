"""Prompt template for answer generation.

The retrieved context precedes the question; both are inserted verbatim.
"""

from __future__ import annotations

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful AI assistant that answers questions based on a given "
    "document context."
)

_USER_TEMPLATE = """\
Based on the following context, please provide a comprehensive answer to the \
user's question. If the context does not contain the answer, state that you \
cannot find the answer in the provided document.

Context:
---
{context}
---

Question: {question}
"""


def build_messages(
    context: str,
    question: str,
    system_prompt: str = DEFAULT_SYSTEM_PROMPT,
) -> list[dict]:
    """Return the OpenAI-style message list for one answer."""
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": _USER_TEMPLATE.format(context=context, question=question)},
    ]
