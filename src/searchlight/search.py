"""Web search via SerpAPI.

Returns the organic (non-paid) results as SearchResults, in the engine's
relevance order, truncated to ``max_results``. The API key is read from
``SERP_API_KEY``. Failures raise SearchError and end the run.
"""

from __future__ import annotations

import json
import logging
import os
import urllib.error
import urllib.parse
import urllib.request
from typing import Any

from searchlight.ingest.fetch import USER_AGENT
from searchlight.models import SearchResult

logger = logging.getLogger(__name__)

SERPAPI_URL = "https://serpapi.com/search.json"
API_KEY_ENV = "SERP_API_KEY"
DEFAULT_TIMEOUT = 20.0  # seconds


class SearchError(RuntimeError):
    """Raised when the search provider cannot be reached or answers with an error."""


def get_api_key() -> str:
    """Return the SerpAPI key.

    Raises:
        EnvironmentError: If SERP_API_KEY is not set.
    """
    key = os.getenv(API_KEY_ENV, "").strip()
    if not key:
        raise EnvironmentError(
            f"Search API key not found. Set the {API_KEY_ENV} environment variable."
        )
    return key


def search(
    query: str,
    engine: str = "google",
    max_results: int = 1,
    api_key: str | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> list[SearchResult]:
    """Run *query* on *engine* and return at most *max_results* organic results."""
    if not query.strip():
        return []

    params = {"engine": engine, "q": query, "api_key": api_key or get_api_key()}
    url = f"{SERPAPI_URL}?{urllib.parse.urlencode(params)}"
    request = urllib.request.Request(
        url, headers={"User-Agent": USER_AGENT, "Accept": "application/json"}
    )

    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            payload = json.loads(response.read().decode("utf-8"))
    except urllib.error.HTTPError as exc:
        raise SearchError(f"Search request failed with HTTP {exc.code}: {exc.reason}") from exc
    except (urllib.error.URLError, OSError) as exc:
        raise SearchError(f"Search request failed: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise SearchError(f"Search provider returned invalid JSON: {exc}") from exc

    if isinstance(payload, dict) and payload.get("error"):
        error = str(payload["error"])
        # SerpAPI reports an empty result page as an error.
        if "returned any results" not in error:
            raise SearchError(f"Search provider error: {error}")

    results = parse_organic_results(payload)[:max_results]
    logger.info("search: %d result(s) for %r", len(results), query)
    return results


def parse_organic_results(payload: Any) -> list[SearchResult]:
    """Map ``organic_results`` entries to SearchResults, skipping entries without a link."""
    if not isinstance(payload, dict):
        return []
    results: list[SearchResult] = []
    for item in payload.get("organic_results") or []:
        if not isinstance(item, dict):
            continue
        link = str(item.get("link") or "").strip()
        if not link:
            continue
        results.append(SearchResult(link=link, title=str(item.get("title") or "")))
    return results
