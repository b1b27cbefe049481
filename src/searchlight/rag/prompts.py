"""Prompt assembly for grounded answering.

Two messages:
  system  SYSTEM_TEMPLATE with the retrieved chunk texts interpolated as {context}
  user    the question, verbatim

An empty retrieval produces an empty context block; the system instruction
still tells the model to say it does not know rather than invent an answer.
"""

from __future__ import annotations

from searchlight.models import Chunk

SYSTEM_TEMPLATE = (
    "Use the following context to answer the question at the end. "
    "If you don't know the answer just say that you don't know. "
    "Don't try to make up an answer.\n"
    "-----------------------\n"
    "{context}"
)


def format_context(chunks: list[Chunk]) -> str:
    """Join chunk texts in retrieval order, separated by blank lines."""
    return "\n\n".join(chunk.text for chunk in chunks)


def build_messages(question: str, chunks: list[Chunk]) -> list[dict[str, str]]:
    system_prompt = SYSTEM_TEMPLATE.format(context=format_context(chunks))
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": question},
    ]
