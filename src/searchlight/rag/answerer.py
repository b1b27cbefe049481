"""Retrieval-augmented answering: retrieve → prompt → one model call."""

from __future__ import annotations

import logging
from collections.abc import Callable

from searchlight.models import Answer, Completion
from searchlight.rag import llm_client
from searchlight.rag.index import EmbeddingIndex
from searchlight.rag.prompts import build_messages
from searchlight.rag.usage import TokenUsageTracker

logger = logging.getLogger(__name__)

CompleteFn = Callable[..., Completion]


class RetrievalAugmentedAnswerer:
    """Answer questions from an EmbeddingIndex with a language model.

    Args:
        index: A fully built index.
        model: LiteLLM generation model.
        temperature: Sampling temperature.
        top_k: Number of chunks retrieved as context.
        max_tokens: Output token cap (provider default if None).
        tracker: Receives the usage of every model call; a private one is
            created if omitted.
        complete_fn: Override for ``llm_client.complete``.
    """

    def __init__(
        self,
        index: EmbeddingIndex,
        model: str = "openai/gpt-4-1106-preview",
        temperature: float = 0.2,
        top_k: int = 4,
        max_tokens: int | None = None,
        tracker: TokenUsageTracker | None = None,
        complete_fn: CompleteFn | None = None,
    ) -> None:
        self.index = index
        self.model = model
        self.temperature = temperature
        self.top_k = top_k
        self.max_tokens = max_tokens
        self.tracker = tracker if tracker is not None else TokenUsageTracker()
        self._complete = complete_fn or llm_client.complete

    def answer(self, question: str) -> Answer:
        """Retrieve context for *question* and return the model's answer verbatim."""
        chunks = self.index.retrieve(question, k=self.top_k)
        logger.info("answer: %d context chunks for question", len(chunks))

        completion = self._complete(
            model=self.model,
            messages=build_messages(question, chunks),
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        self.tracker.record(completion.usage)
        return Answer(text=completion.text, chunks=chunks, usage=completion.usage)
