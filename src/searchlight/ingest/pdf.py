"""PDF extraction — page text via pypdf.

pypdf is given a file path, so the response body is staged in a temporary
file. Each call gets its own uniquely named file, and the file is removed on
every exit path (text, empty text, parse error). A failure to remove it is
not swallowed.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

import pypdf

from searchlight.ingest.base import ContentTypeStrategy
from searchlight.ingest.fetch import FetchedResource

logger = logging.getLogger(__name__)


class PdfStrategy(ContentTypeStrategy):
    """Extract text from a PDF response body.

    Pages that yield no text (scanned images, etc.) are skipped; page texts
    are joined with blank lines.
    """

    name = "pdf"
    content_type_marker = "pdf"

    def __init__(self, tmp_dir: str | Path | None = None) -> None:
        self.tmp_dir = str(tmp_dir) if tmp_dir is not None else None

    def try_extract(self, resource: FetchedResource) -> str:
        fd, tmp_path = tempfile.mkstemp(suffix=".pdf", prefix="searchlight-", dir=self.tmp_dir)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(resource.body)
            text = self._parse(tmp_path, resource.url)
        finally:
            os.unlink(tmp_path)

        if not text:
            logger.warning(
                "pdf: no text extracted from %s", resource.url, extra={"alert": True}
            )
        else:
            logger.info("pdf: %d characters from %s", len(text), resource.url)
        return text

    @staticmethod
    def _parse(path: str, url: str) -> str:
        try:
            reader = pypdf.PdfReader(path)
            parts: list[str] = []
            for page in reader.pages:
                page_text = (page.extract_text() or "").strip()
                if page_text:
                    parts.append(page_text)
        except Exception as exc:
            # pypdf raises a wide range of errors on malformed input.
            logger.warning("pdf: could not parse %s: %s", url, exc)
            return ""
        return "\n\n".join(parts)
