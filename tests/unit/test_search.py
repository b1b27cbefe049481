"""Tests for SerpAPI search (network mocked)."""

from __future__ import annotations

import io
import json
import urllib.error
import urllib.parse
from unittest.mock import MagicMock, patch

import pytest

from searchlight.models import SearchResult
from searchlight.search import SearchError, get_api_key, parse_organic_results, search

_PAYLOAD = {
    "organic_results": [
        {"position": 1, "title": "Tokyo NYE countdown guide", "link": "https://a.example/nye"},
        {"position": 2, "title": "Shibuya countdown", "link": "https://b.example/shibuya"},
        {"position": 3, "title": "No link here"},
    ],
    "ads": [{"link": "https://ads.example"}],
}


def _urlopen_returning(payload) -> MagicMock:
    body = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
    response = MagicMock()
    response.read.return_value = body
    cm = MagicMock()
    cm.__enter__.return_value = response
    return MagicMock(return_value=cm)


# ------------------------------------------------------------------
# API key
# ------------------------------------------------------------------


def test_get_api_key_missing(monkeypatch):
    monkeypatch.delenv("SERP_API_KEY", raising=False)
    with pytest.raises(EnvironmentError, match="SERP_API_KEY"):
        get_api_key()


def test_get_api_key_set(monkeypatch):
    monkeypatch.setenv("SERP_API_KEY", " serp-key ")
    assert get_api_key() == "serp-key"


# ------------------------------------------------------------------
# search()
# ------------------------------------------------------------------


def test_search_returns_first_organic_result_by_default():
    with patch("searchlight.search.urllib.request.urlopen", _urlopen_returning(_PAYLOAD)):
        results = search("tokyo new year countdown", api_key="k")
    assert results == [SearchResult(link="https://a.example/nye", title="Tokyo NYE countdown guide")]


def test_search_respects_max_results_and_order():
    with patch("searchlight.search.urllib.request.urlopen", _urlopen_returning(_PAYLOAD)):
        results = search("q", max_results=5, api_key="k")
    assert [r.link for r in results] == ["https://a.example/nye", "https://b.example/shibuya"]


def test_search_request_parameters():
    opener = _urlopen_returning(_PAYLOAD)
    with patch("searchlight.search.urllib.request.urlopen", opener):
        search("tokyo party", engine="bing", api_key="secret", timeout=5.0)

    request = opener.call_args.args[0]
    query = urllib.parse.parse_qs(urllib.parse.urlparse(request.full_url).query)
    assert query == {"engine": ["bing"], "q": ["tokyo party"], "api_key": ["secret"]}
    assert opener.call_args.kwargs["timeout"] == 5.0


def test_search_reads_key_from_env(monkeypatch):
    monkeypatch.setenv("SERP_API_KEY", "from-env")
    opener = _urlopen_returning(_PAYLOAD)
    with patch("searchlight.search.urllib.request.urlopen", opener):
        search("q")
    assert "api_key=from-env" in opener.call_args.args[0].full_url


def test_blank_query_makes_no_request():
    with patch("searchlight.search.urllib.request.urlopen") as opener:
        assert search("   ", api_key="k") == []
    opener.assert_not_called()


def test_no_results_error_is_empty_list():
    payload = {"error": "Google hasn't returned any results for this query."}
    with patch("searchlight.search.urllib.request.urlopen", _urlopen_returning(payload)):
        assert search("zzzz", api_key="k") == []


def test_provider_error_raises():
    payload = {"error": "Invalid API key."}
    with patch("searchlight.search.urllib.request.urlopen", _urlopen_returning(payload)):
        with pytest.raises(SearchError, match="Invalid API key"):
            search("q", api_key="bad")


def test_http_error_raises_search_error():
    error = urllib.error.HTTPError("https://serpapi.com", 401, "Unauthorized", {}, io.BytesIO(b""))
    with patch("searchlight.search.urllib.request.urlopen", side_effect=error):
        with pytest.raises(SearchError, match="401"):
            search("q", api_key="k")


def test_network_error_raises_search_error():
    with patch(
        "searchlight.search.urllib.request.urlopen",
        side_effect=urllib.error.URLError("connection refused"),
    ):
        with pytest.raises(SearchError):
            search("q", api_key="k")


def test_invalid_json_raises_search_error():
    with patch("searchlight.search.urllib.request.urlopen", _urlopen_returning(b"<html>")):
        with pytest.raises(SearchError, match="invalid JSON"):
            search("q", api_key="k")


# ------------------------------------------------------------------
# parse_organic_results()
# ------------------------------------------------------------------


def test_parse_skips_entries_without_link():
    results = parse_organic_results(_PAYLOAD)
    assert [r.title for r in results] == ["Tokyo NYE countdown guide", "Shibuya countdown"]


def test_parse_missing_section():
    assert parse_organic_results({}) == []
    assert parse_organic_results([]) == []
