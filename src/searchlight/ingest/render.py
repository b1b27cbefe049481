"""Rendered-HTML fallback — headless Chromium via Playwright.

Used only when direct HTML conversion produced no text, which is the usual
signature of a page whose content is generated by scripts. The page is loaded,
given time to settle, and its rendered ``<body>`` markup is converted with the
same ``html_to_text()`` as the direct path.

Settling:
  1. Navigate with ``wait_until="domcontentloaded"``.
  2. Wait for the ``networkidle`` load state, bounded by ``readiness_timeout_ms``.
  3. If that signal times out (or is disabled with 0), wait the fixed
     ``settle_delay_ms`` instead.
"""

from __future__ import annotations

import logging

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from searchlight.ingest.base import ContentTypeStrategy
from searchlight.ingest.fetch import FetchedResource
from searchlight.ingest.html import html_to_text

logger = logging.getLogger(__name__)

DEFAULT_SETTLE_DELAY_MS = 5_000
DEFAULT_READINESS_TIMEOUT_MS = 10_000

_BODY_SCRIPT = "() => document.body ? document.body.innerHTML : ''"


class RenderedHtmlStrategy(ContentTypeStrategy):
    """Render the page in a headless browser and convert the resulting DOM."""

    name = "rendered-html"
    content_type_marker = "html"

    def __init__(
        self,
        settle_delay_ms: int = DEFAULT_SETTLE_DELAY_MS,
        readiness_timeout_ms: int = DEFAULT_READINESS_TIMEOUT_MS,
        headless: bool = True,
    ) -> None:
        if settle_delay_ms < 0 or readiness_timeout_ms < 0:
            raise ValueError("settle_delay_ms and readiness_timeout_ms must be >= 0")
        self.settle_delay_ms = settle_delay_ms
        self.readiness_timeout_ms = readiness_timeout_ms
        self.headless = headless

    def try_extract(self, resource: FetchedResource) -> str:
        try:
            markup = self.render(resource.url)
        except PlaywrightError as exc:
            logger.warning("rendered-html: rendering %s failed: %s", resource.url, exc)
            return ""
        text = html_to_text(markup)
        logger.info("rendered-html: %d characters from %s", len(text), resource.url)
        return text

    def render(self, url: str) -> str:
        """Return the rendered ``document.body.innerHTML`` of *url*."""
        with sync_playwright() as pw:
            browser = pw.chromium.launch(headless=self.headless)
            try:
                page = browser.new_page()
                page.goto(url, wait_until="domcontentloaded")
                self._wait_until_settled(page)
                return page.evaluate(_BODY_SCRIPT) or ""
            finally:
                browser.close()

    def _wait_until_settled(self, page: Page) -> None:
        if self.readiness_timeout_ms > 0:
            try:
                page.wait_for_load_state("networkidle", timeout=self.readiness_timeout_ms)
                return
            except PlaywrightTimeoutError:
                logger.info(
                    "rendered-html: no network-idle within %d ms, waiting %d ms",
                    self.readiness_timeout_ms,
                    self.settle_delay_ms,
                )
        page.wait_for_timeout(self.settle_delay_ms)
