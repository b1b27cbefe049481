"""Domain models shared across the search → extract → index → answer pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class SearchResult:
    link: str
    title: str = ""


@dataclass
class ExtractedDocument:
    source_url: str
    text: str
    content_type: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()


@dataclass
class Chunk:
    source_url: str
    ordinal: int
    text: str
    rowid: int | None = None  # set by EmbeddingIndex.build(); None before indexing


@dataclass
class IndexEntry:
    chunk: Chunk
    embedding: list[float]


@dataclass(frozen=True)
class TokenUsage:
    """Token counts reported by a single model call (or a sum of calls)."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def __add__(self, other: TokenUsage) -> TokenUsage:
        return TokenUsage(
            prompt_tokens=self.prompt_tokens + other.prompt_tokens,
            completion_tokens=self.completion_tokens + other.completion_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
        )

    @classmethod
    def from_response(cls, usage: Any) -> TokenUsage:
        """Build from a provider usage object or dict. Missing fields count as 0."""
        if usage is None:
            return cls()
        if isinstance(usage, dict):
            get = usage.get
        else:
            def get(name: str) -> Any:
                return getattr(usage, name, None)
        return cls(
            prompt_tokens=int(get("prompt_tokens") or 0),
            completion_tokens=int(get("completion_tokens") or 0),
            total_tokens=int(get("total_tokens") or 0),
        )


@dataclass
class Completion:
    text: str
    usage: TokenUsage = field(default_factory=TokenUsage)


@dataclass
class Answer:
    text: str
    chunks: list[Chunk] = field(default_factory=list)
    usage: TokenUsage = field(default_factory=TokenUsage)

    def __str__(self) -> str:
        return self.text


@dataclass
class RunResult:
    question: str
    results: list[SearchResult]
    documents: list[ExtractedDocument]
    answer: Answer
    usage: TokenUsage
