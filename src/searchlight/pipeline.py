"""End-to-end run: search → extract → chunk → index → answer.

Search results are extracted one at a time when ``fetch.concurrency`` is 1,
otherwise on a bounded thread pool. Either way documents come back in search
order and chunk ordinals are per document, so the index (and therefore tie
breaking in retrieval) is the same for both modes. The index is fully built
before the question is answered.

Transport failures (search, fetch) and temp-file cleanup failures propagate
and end the run; there is no retry.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor

from searchlight import search as search_module
from searchlight.config import SearchlightConfig
from searchlight.ingest.chunker import TextChunker
from searchlight.ingest.extractor import ContentExtractor
from searchlight.models import Chunk, ExtractedDocument, RunResult, SearchResult
from searchlight.rag.answerer import CompleteFn, RetrievalAugmentedAnswerer
from searchlight.rag.index import EmbeddingIndex
from searchlight.rag.usage import TokenUsageTracker

logger = logging.getLogger(__name__)

Searcher = Callable[[str], list[SearchResult]]
IndexBuilder = Callable[[list[Chunk]], EmbeddingIndex]


class Pipeline:
    """Answer one question per run from freshly searched web content.

    Collaborators default to the real implementations built from *config*;
    each can be replaced (tests, alternative providers).
    """

    def __init__(
        self,
        config: SearchlightConfig | None = None,
        searcher: Searcher | None = None,
        extractor: ContentExtractor | None = None,
        chunker: TextChunker | None = None,
        index_builder: IndexBuilder | None = None,
        complete_fn: CompleteFn | None = None,
    ) -> None:
        self.config = config or SearchlightConfig()
        cfg = self.config
        self._search = searcher or self._default_searcher
        self.extractor = extractor or ContentExtractor.from_config(cfg.fetch, cfg.render)
        self.chunker = chunker or TextChunker(
            chunk_size=cfg.chunking.chunk_size, overlap=cfg.chunking.overlap
        )
        self._build_index = index_builder or self._default_index_builder
        self._complete = complete_fn
        self.tracker = TokenUsageTracker()

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def search(self, query: str) -> list[SearchResult]:
        results = self._search(query)[: self.config.search.max_results]
        for result in results:
            logger.info("result: %s (%s)", result.link, result.title)
        return results

    def extract_all(self, results: list[SearchResult]) -> list[ExtractedDocument]:
        """Extract every result; output order matches *results*."""
        workers = min(self.config.fetch.concurrency, len(results))
        if workers <= 1:
            return [self.extractor.extract(r.link) for r in results]

        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(self.extractor.extract, [r.link for r in results]))

    def chunk_all(self, documents: list[ExtractedDocument]) -> list[Chunk]:
        chunks: list[Chunk] = []
        for doc in documents:
            if doc.is_empty:
                logger.info("no text extracted from %s — skipped", doc.source_url)
                continue
            doc_chunks = self.chunker.chunk(doc.text, source_url=doc.source_url)
            logger.info("%d chunk(s) from %s", len(doc_chunks), doc.source_url)
            chunks.extend(doc_chunks)
        return chunks

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(self, question: str, query: str | None = None) -> RunResult:
        """Search for *query* (defaults to *question*) and answer *question*."""
        query = query or question
        results = self.search(query)
        documents = self.extract_all(results)
        chunks = self.chunk_all(documents)

        with self._build_index(chunks) as index:
            gen = self.config.generation
            answerer = RetrievalAugmentedAnswerer(
                index,
                model=gen.model,
                temperature=gen.temperature,
                top_k=self.config.retrieval.top_k,
                max_tokens=gen.max_tokens,
                tracker=self.tracker,
                complete_fn=self._complete,
            )
            answer = answerer.answer(question)

        totals = self.tracker.totals
        logger.info(
            "tokens: prompt=%d completion=%d total=%d",
            totals.prompt_tokens,
            totals.completion_tokens,
            totals.total_tokens,
        )
        return RunResult(
            question=question,
            results=results,
            documents=documents,
            answer=answer,
            usage=totals,
        )

    # ------------------------------------------------------------------
    # Defaults
    # ------------------------------------------------------------------

    def _default_searcher(self, query: str) -> list[SearchResult]:
        s = self.config.search
        return search_module.search(
            query, engine=s.engine, max_results=s.max_results, timeout=s.timeout
        )

    def _default_index_builder(self, chunks: list[Chunk]) -> EmbeddingIndex:
        e = self.config.embedding
        return EmbeddingIndex.build(chunks, model=e.model, batch_size=e.batch_size)
