"""Tests for fetch_resource — SSRF guard, scheme validation, transport errors."""

from __future__ import annotations

import urllib.error
from email.message import Message
from io import BytesIO
from unittest.mock import MagicMock, patch

import pytest

from searchlight.ingest.fetch import (
    FetchedResource,
    FetchError,
    SsrfError,
    check_ssrf,
    fetch_resource,
    validate_scheme,
)


# ------------------------------------------------------------------
# Scheme validation
# ------------------------------------------------------------------


def test_scheme_https_ok():
    validate_scheme("https://example.com/page")  # no exception


def test_scheme_http_ok():
    validate_scheme("http://example.com/page")  # no exception


def test_scheme_file_raises():
    with pytest.raises(FetchError, match="scheme"):
        validate_scheme("file:///etc/passwd")


def test_check_ssrf_no_hostname_raises():
    with pytest.raises(FetchError, match="hostname"):
        check_ssrf("https://")


# ------------------------------------------------------------------
# SSRF guard
# ------------------------------------------------------------------


def _patch_getaddrinfo(ip: str):
    """Return a context manager that makes getaddrinfo resolve to *ip*."""
    addr_info = [(None, None, None, None, (ip, 0))]
    return patch("searchlight.ingest.fetch.socket.getaddrinfo", return_value=addr_info)


def test_ssrf_public_ip_ok():
    with _patch_getaddrinfo("93.184.216.34"):
        check_ssrf("https://example.com")  # no exception


@pytest.mark.parametrize("ip", ["127.0.0.1", "10.0.0.1", "192.168.1.1", "169.254.169.254", "::1"])
def test_ssrf_private_addresses_blocked(ip):
    with _patch_getaddrinfo(ip):
        with pytest.raises(SsrfError, match="private address"):
            check_ssrf("http://internal.example/")


def test_ssrf_error_is_fetch_error():
    assert issubclass(SsrfError, FetchError)


# ------------------------------------------------------------------
# fetch_resource()
# ------------------------------------------------------------------


def _headers(content_type: str | None) -> Message:
    msg = Message()
    if content_type is not None:
        msg["Content-Type"] = content_type
    return msg


def _mock_response(body: bytes, content_type: str | None = "text/html; charset=utf-8"):
    response = MagicMock()
    response.headers = _headers(content_type)
    response.read.side_effect = lambda n=-1: body[:n] if n >= 0 else body
    return response


def _patch_opener(response=None, side_effect=None):
    opener = MagicMock()
    if side_effect is not None:
        opener.open.side_effect = side_effect
    else:
        opener.open.return_value = response
    return patch("searchlight.ingest.fetch.urllib.request.build_opener", return_value=opener)


def test_fetch_returns_body_and_content_type():
    with _patch_getaddrinfo("93.184.216.34"), _patch_opener(_mock_response(b"<p>Hi</p>")):
        resource = fetch_resource("https://example.com/")
    assert resource.body == b"<p>Hi</p>"
    assert resource.content_type == "text/html; charset=utf-8"
    assert resource.charset == "utf-8"


def test_fetch_missing_content_type_is_none():
    with _patch_getaddrinfo("93.184.216.34"), _patch_opener(_mock_response(b"x", None)):
        resource = fetch_resource("https://example.com/")
    assert resource.content_type is None


def test_fetch_network_error_raises_fetch_error():
    err = urllib.error.URLError("connection refused")
    with _patch_getaddrinfo("93.184.216.34"), _patch_opener(side_effect=err):
        with pytest.raises(FetchError, match="Failed to fetch"):
            fetch_resource("https://example.com/")


def test_fetch_http_error_status_keeps_body():
    err = urllib.error.HTTPError(
        "https://example.com/missing",
        404,
        "Not Found",
        _headers("text/html"),
        BytesIO(b"<p>Page not found</p>"),
    )
    with _patch_getaddrinfo("93.184.216.34"), _patch_opener(side_effect=err):
        resource = fetch_resource("https://example.com/missing")
    assert resource.body == b"<p>Page not found</p>"
    assert resource.content_type == "text/html"


def test_fetch_body_over_limit_raises():
    with _patch_getaddrinfo("93.184.216.34"), _patch_opener(_mock_response(b"x" * 20)):
        with pytest.raises(FetchError, match="limit"):
            fetch_resource("https://example.com/", max_bytes=10)


def test_fetch_private_address_never_connects():
    with _patch_getaddrinfo("127.0.0.1"), _patch_opener(_mock_response(b"")) as build:
        with pytest.raises(SsrfError):
            fetch_resource("http://localhost/")
    build.assert_not_called()


# ------------------------------------------------------------------
# FetchedResource.text()
# ------------------------------------------------------------------


def test_resource_text_uses_charset():
    res = FetchedResource(url="u", content_type="text/html", body="café".encode("latin-1"), charset="latin-1")
    assert res.text() == "café"


def test_resource_text_unknown_charset_falls_back_to_utf8():
    res = FetchedResource(url="u", content_type="text/html", body="café".encode(), charset="no-such-codec")
    assert res.text() == "café"
