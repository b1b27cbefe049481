"""In-memory embedding index over sqlite-vec.

Build is a barrier: ``EmbeddingIndex.build()`` embeds every chunk before it
returns, so a query can never see a partially built index. The index is
immutable afterwards.

Chunks are stored with rowid = insertion order (1-based). Queries rank by
cosine distance (ascending, i.e. highest similarity first) and break ties by
rowid, so equal scores keep the original chunk order.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from searchlight.db.connection import Database
from searchlight.db.vectors import ensure_vec_table, model_to_slug
from searchlight.models import Chunk, IndexEntry
from searchlight.rag import llm_client

logger = logging.getLogger(__name__)

Embedder = Callable[[list[str]], list[list[float]]]

# sqlite-vec caps k for KNN queries.
_MAX_KNN = 4096


@dataclass
class ScoredChunk:
    """A retrieved chunk and its similarity to the query (1 - cosine distance)."""

    chunk: Chunk
    similarity: float


class EmbeddingIndex:
    """Nearest-neighbour retrieval over a fixed set of chunks.

    Use ``EmbeddingIndex.build()`` rather than the constructor.
    """

    def __init__(
        self,
        conn: sqlite3.Connection | None,
        table: str | None,
        entries: list[IndexEntry],
        embedder: Embedder,
    ) -> None:
        self._conn = conn
        self._table = table
        self._entries = entries
        self._by_rowid = {e.chunk.rowid: e.chunk for e in entries}
        self._embedder = embedder

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def build(
        cls,
        chunks: Sequence[Chunk],
        model: str = "openai/text-embedding-ada-002",
        batch_size: int = 64,
        embedder: Embedder | None = None,
    ) -> EmbeddingIndex:
        """Embed all *chunks* and return a ready index.

        Args:
            chunks: Chunks from every extracted document, in order.
            model: LiteLLM embedding model (also used for queries).
            batch_size: Texts per embedding request.
            embedder: Override for the embedding call (texts → vectors).

        Raises:
            RuntimeError: If the provider returns vectors of inconsistent size.
        """
        if embedder is None:
            def embedder(texts: list[str]) -> list[list[float]]:
                return llm_client.embed(model, texts, batch_size=batch_size)

        if not chunks:
            logger.info("index: no chunks to embed, index is empty")
            return cls(None, None, [], embedder)

        vectors = embedder([c.text for c in chunks])
        if len(vectors) != len(chunks):
            raise RuntimeError(
                f"Embedding returned {len(vectors)} vectors for {len(chunks)} chunks."
            )
        dimensions = len(vectors[0])
        if any(len(v) != dimensions for v in vectors):
            raise RuntimeError("Embedding vectors have inconsistent dimensions.")

        conn = Database().connect()
        try:
            table = ensure_vec_table(conn, model_to_slug(model), dimensions)
            entries: list[IndexEntry] = []
            for rowid, (chunk, vector) in enumerate(zip(chunks, vectors), start=1):
                chunk.rowid = rowid
                conn.execute(
                    f"INSERT INTO {table}(rowid, embedding) VALUES (?, ?)",
                    (rowid, json.dumps(vector)),
                )
                entries.append(IndexEntry(chunk=chunk, embedding=list(vector)))
            conn.commit()
        except Exception:
            conn.close()
            raise

        logger.info("index: %d chunks embedded (%d dimensions)", len(entries), dimensions)
        return cls(conn, table, entries, embedder)

    # ------------------------------------------------------------------
    # Retrieval
    # ------------------------------------------------------------------

    def query(self, text: str, k: int = 4) -> list[ScoredChunk]:
        """Return up to *k* chunks most similar to *text*, best first."""
        if not self._entries or k < 1:
            return []

        query_vector = self._embedder([text])[0]
        rows = self._conn.execute(
            f"SELECT rowid, distance FROM {self._table} "
            "WHERE embedding MATCH ? AND k = ? ORDER BY distance",
            (json.dumps(query_vector), min(len(self._entries), _MAX_KNN)),
        ).fetchall()

        # Cosine distance is NULL when either vector has zero norm; rank those last.
        ranked = sorted(
            rows,
            key=lambda r: (r["distance"] is None, r["distance"] or 0.0, r["rowid"]),
        )[:k]
        return [
            ScoredChunk(chunk=self._by_rowid[r["rowid"]], similarity=_similarity(r["distance"]))
            for r in ranked
        ]

    def retrieve(self, text: str, k: int = 4) -> list[Chunk]:
        return [sc.chunk for sc in self.query(text, k)]

    # ------------------------------------------------------------------
    # Introspection / lifecycle
    # ------------------------------------------------------------------

    @property
    def entries(self) -> tuple[IndexEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> EmbeddingIndex:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def _similarity(distance: float | None) -> float:
    return 0.0 if distance is None else 1.0 - distance
