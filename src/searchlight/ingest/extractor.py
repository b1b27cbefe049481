"""ContentExtractor — URL → plain text via an ordered strategy chain.

The resource is fetched once. Every strategy that accepts the response's
Content-Type is tried in chain order until one returns non-empty text; the
last attempted strategy's output is the result, even if it is empty.

Default chain:
  HtmlStrategy          (content type contains "html")
  RenderedHtmlStrategy  (content type contains "html"; only reached when the
                         direct conversion was empty)
  PdfStrategy           (content type contains "pdf")

A content type no strategy accepts (including a missing header) yields empty
text with no fallback. Fetch failures propagate.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from searchlight.config import FetchCfg, RenderCfg
from searchlight.ingest.base import ExtractionStrategy
from searchlight.ingest.fetch import FetchedResource, fetch_resource
from searchlight.ingest.html import HtmlStrategy
from searchlight.ingest.pdf import PdfStrategy
from searchlight.ingest.render import RenderedHtmlStrategy
from searchlight.models import ExtractedDocument

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], FetchedResource]


def default_strategies(render: RenderCfg | None = None) -> list[ExtractionStrategy]:
    render = render or RenderCfg()
    strategies: list[ExtractionStrategy] = [HtmlStrategy()]
    if render.enabled:
        strategies.append(
            RenderedHtmlStrategy(
                settle_delay_ms=render.settle_delay_ms,
                readiness_timeout_ms=render.readiness_timeout_ms,
                headless=render.headless,
            )
        )
    strategies.append(PdfStrategy())
    return strategies


class ContentExtractor:
    """Turn URLs into ExtractedDocuments.

    Args:
        strategies: Extraction strategies in the order they are tried.
        fetcher: Callable returning a FetchedResource for a URL.
    """

    def __init__(
        self,
        strategies: Sequence[ExtractionStrategy] | None = None,
        fetcher: Fetcher | None = None,
    ) -> None:
        self.strategies = list(strategies) if strategies is not None else default_strategies()
        self._fetch = fetcher or fetch_resource

    @classmethod
    def from_config(cls, fetch: FetchCfg, render: RenderCfg) -> ContentExtractor:
        def fetcher(url: str) -> FetchedResource:
            return fetch_resource(
                url,
                timeout=fetch.timeout,
                max_bytes=fetch.max_bytes,
                max_redirects=fetch.max_redirects,
            )

        return cls(strategies=default_strategies(render), fetcher=fetcher)

    def extract(self, url: str) -> ExtractedDocument:
        """Fetch *url* and return its text (empty on any extraction failure)."""
        resource = self._fetch(url)
        raw_type = resource.content_type or ""
        logger.info("extracting %s (content-type: %r)", url, resource.content_type)

        text = self.extract_resource(resource)
        return ExtractedDocument(source_url=url, text=text, content_type=raw_type)

    def extract_resource(self, resource: FetchedResource) -> str:
        """Run the strategy chain over an already fetched resource."""
        content_type = (resource.content_type or "").lower()
        candidates = [s for s in self.strategies if content_type and s.accepts(content_type)]

        if not candidates:
            logger.warning(
                "unsupported content type %r for %s — no text extracted",
                resource.content_type,
                resource.url,
                extra={"alert": True},
            )
            return ""

        text = ""
        for strategy in candidates:
            text = strategy.try_extract(resource)
            if text:
                break
            logger.info("%s: no text from %s", strategy.name, resource.url)
        return text

    def extract_text(self, url: str) -> str:
        return self.extract(url).text
