"""Searchlight retrieval-augmented generation — index, prompt, answer, usage."""

from searchlight.rag.answerer import RetrievalAugmentedAnswerer
from searchlight.rag.index import EmbeddingIndex, ScoredChunk
from searchlight.rag.usage import TokenUsageTracker

__all__ = [
    "EmbeddingIndex",
    "RetrievalAugmentedAnswerer",
    "ScoredChunk",
    "TokenUsageTracker",
]
