"""HTML → plain text conversion (BeautifulSoup cleanup + html2text)."""

from __future__ import annotations

import logging

import html2text
from bs4 import BeautifulSoup

from searchlight.ingest.base import ContentTypeStrategy
from searchlight.ingest.fetch import FetchedResource

logger = logging.getLogger(__name__)

_STRIP_TAGS = ["script", "style", "noscript", "template", "head"]


def _converter() -> html2text.HTML2Text:
    h2t = html2text.HTML2Text()
    h2t.ignore_links = True
    h2t.ignore_images = True
    h2t.body_width = 0
    return h2t


def html_to_text(markup: str) -> str:
    """Strip non-content tags, then convert the remaining markup to text.

    Readable text keeps document order. Returns ``""`` for markup that holds
    no visible text (e.g. a script-only application shell).
    """
    if not markup.strip():
        return ""
    soup = BeautifulSoup(markup, "html.parser")
    for tag in soup.find_all(_STRIP_TAGS):
        tag.decompose()
    # HTML2Text keeps state between handle() calls, so use a fresh one each time.
    return _converter().handle(str(soup)).strip()


class HtmlStrategy(ContentTypeStrategy):
    """Direct conversion of the fetched HTML body."""

    name = "html"
    content_type_marker = "html"

    def try_extract(self, resource: FetchedResource) -> str:
        text = html_to_text(resource.text())
        logger.info("html: %d characters from %s", len(text), resource.url)
        return text
