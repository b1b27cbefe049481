"""Shared pytest fixtures."""

from __future__ import annotations

import re

import pytest

from searchlight.db.connection import Database
from searchlight.models import Completion, TokenUsage

# Small fixed vocabulary: each text is embedded as word counts over it, plus a
# constant component so no vector is all zeros.
_VOCAB = ["tokyo", "countdown", "party", "shrine", "pdf", "weather", "paris", "music"]


def bag_of_words(text: str) -> list[float]:
    words = re.findall(r"[a-z]+", text.lower())
    return [float(words.count(w)) for w in _VOCAB] + [1.0]


class FakeEmbedder:
    """Records every call and returns bag-of-words vectors."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []

    def __call__(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [bag_of_words(t) for t in texts]


class FakeComplete:
    """Stand-in for llm_client.complete with fixed text and usage."""

    def __init__(self, text: str = "An answer.", usage: TokenUsage | None = None) -> None:
        self.text = text
        self.usage = usage or TokenUsage(prompt_tokens=50, completion_tokens=20, total_tokens=70)
        self.calls: list[dict] = []

    def __call__(self, **kwargs) -> Completion:
        self.calls.append(kwargs)
        return Completion(text=self.text, usage=self.usage)


@pytest.fixture
def fake_embedder():
    return FakeEmbedder()


@pytest.fixture
def fake_complete():
    return FakeComplete()


@pytest.fixture
def mem_db():
    """In-memory DB with sqlite-vec loaded, closed after test."""
    conn = Database().connect()
    yield conn
    conn.close()
