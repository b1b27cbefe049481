"""Searchlight ingest — fetch, content extraction strategies, and chunking."""

from searchlight.ingest.base import ExtractionStrategy
from searchlight.ingest.chunker import TextChunker
from searchlight.ingest.extractor import ContentExtractor, default_strategies
from searchlight.ingest.fetch import FetchedResource, FetchError, SsrfError, fetch_resource
from searchlight.ingest.html import HtmlStrategy, html_to_text
from searchlight.ingest.pdf import PdfStrategy
from searchlight.ingest.render import RenderedHtmlStrategy

__all__ = [
    "ContentExtractor",
    "ExtractionStrategy",
    "FetchError",
    "FetchedResource",
    "HtmlStrategy",
    "PdfStrategy",
    "RenderedHtmlStrategy",
    "SsrfError",
    "TextChunker",
    "default_strategies",
    "fetch_resource",
    "html_to_text",
]
