"""Base interface for extraction strategies."""

from __future__ import annotations

from abc import ABC, abstractmethod

from searchlight.ingest.fetch import FetchedResource


class ExtractionStrategy(ABC):
    """One way of turning a fetched resource into plain text.

    Subclasses declare which content types they handle via ``accepts()`` and
    implement ``try_extract()``. Expected failures are reported as an empty
    string, never as an exception.
    """

    name: str = "base"

    @abstractmethod
    def accepts(self, content_type: str) -> bool:
        """Return True if this strategy can handle *content_type* (lower-cased)."""

    @abstractmethod
    def try_extract(self, resource: FetchedResource) -> str:
        """Return the extracted text for *resource*, or ``""`` on failure."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class ContentTypeStrategy(ExtractionStrategy):
    """Strategy selected by a substring of the Content-Type header."""

    content_type_marker: str = ""

    def accepts(self, content_type: str) -> bool:
        return bool(self.content_type_marker) and self.content_type_marker in content_type
