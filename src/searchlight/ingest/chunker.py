"""Boundary-aware text chunker.

Text longer than ``chunk_size`` characters is cut at the coarsest boundary
that fits, in this order:

  1. paragraph breaks (blank lines)
  2. line breaks
  3. sentence ends (``.``, ``!``, ``?`` followed by whitespace)
  4. whitespace
  5. hard cut every ``chunk_size`` characters

Pieces keep their trailing separator so that every chunk is an exact
substring of the input. Pieces are then merged greedily up to ``chunk_size``;
with ``overlap > 0`` the tail of a chunk (at most ``overlap * chunk_size``
characters) is repeated at the start of the next one.
"""

from __future__ import annotations

import re

from searchlight.models import Chunk

_BOUNDARIES: tuple[re.Pattern[str], ...] = (
    re.compile(r"\n[ \t]*\n\s*"),
    re.compile(r"\n"),
    re.compile(r"(?<=[.!?])\s+"),
    re.compile(r"\s+"),
)


class TextChunker:
    """Split extracted document text into ordered, size-bounded Chunks.

    Default: 1000 characters, 20 % (200 characters) overlap.
    """

    def __init__(self, chunk_size: int = 1_000, overlap: float = 0.2) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")
        if not 0.0 <= overlap < 1.0:
            raise ValueError("overlap must be in [0.0, 1.0)")
        self.chunk_size = chunk_size
        self.overlap = overlap

    def chunk(self, text: str, source_url: str = "") -> list[Chunk]:
        """Split *text* into Chunks with sequential ``ordinal``.

        Empty or whitespace-only text yields no chunks. Text that already fits
        is returned unchanged as a single chunk.
        """
        return [
            Chunk(source_url=source_url, ordinal=i, text=segment)
            for i, segment in enumerate(self.split(text))
        ]

    def split(self, text: str) -> list[str]:
        if not text.strip():
            return []
        if len(text) <= self.chunk_size:
            return [text]

        pieces = self._pieces(text, 0)
        merged = self._merge(pieces)
        return [segment.strip() for segment in merged if segment.strip()]

    # ------------------------------------------------------------------
    # Splitting
    # ------------------------------------------------------------------

    def _pieces(self, text: str, level: int) -> list[str]:
        """Cut *text* into pieces no longer than chunk_size, coarsest boundary first."""
        if len(text) <= self.chunk_size:
            return [text]
        if level >= len(_BOUNDARIES):
            return self._hard_cut(text)

        parts = _split_keep_separator(text, _BOUNDARIES[level])
        if len(parts) == 1:
            return self._pieces(text, level + 1)

        pieces: list[str] = []
        for part in parts:
            pieces.extend(self._pieces(part, level + 1))
        return pieces

    def _hard_cut(self, text: str) -> list[str]:
        size = self.chunk_size
        return [text[i : i + size] for i in range(0, len(text), size)]

    # ------------------------------------------------------------------
    # Merging
    # ------------------------------------------------------------------

    def _merge(self, pieces: list[str]) -> list[str]:
        size = self.chunk_size
        overlap_chars = int(size * self.overlap)

        chunks: list[str] = []
        current: list[str] = []
        total = 0

        for piece in pieces:
            if current and total + len(piece) > size:
                chunks.append("".join(current))
                # Keep a tail of the previous chunk as overlap, as long as it
                # leaves room for the incoming piece.
                while current and (total > overlap_chars or total + len(piece) > size):
                    total -= len(current.pop(0))
            current.append(piece)
            total += len(piece)

        if current:
            chunks.append("".join(current))
        return chunks


def _split_keep_separator(text: str, pattern: re.Pattern[str]) -> list[str]:
    """Split *text* after each match of *pattern*; the separator stays on the left piece."""
    parts: list[str] = []
    start = 0
    for match in pattern.finditer(text):
        end = match.end()
        if end <= start or end >= len(text):
            continue
        parts.append(text[start:end])
        start = end
    parts.append(text[start:])
    return [p for p in parts if p]
