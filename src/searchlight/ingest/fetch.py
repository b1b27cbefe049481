"""Resource fetch with SSRF protection.

Security requirements:
- SSRF guard: ipaddress module blocks private/loopback/link-local ranges before
  any connection is established.
- Allowed URL schemes: https:// and http:// only.
- Max response body and redirect count are capped (see FetchCfg).

Every failure here is a transport failure: it raises FetchError and aborts the
run. Content-type handling is left to the extraction strategies.
"""

from __future__ import annotations

import ipaddress
import logging
import socket
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from http.client import HTTPResponse

logger = logging.getLogger(__name__)

USER_AGENT = "searchlight/0.1 (+https://github.com/searchlight-rag/searchlight)"
DEFAULT_TIMEOUT = 30.0  # seconds
DEFAULT_MAX_BYTES = 20 * 1024 * 1024  # 20 MB
DEFAULT_MAX_REDIRECTS = 3
_ALLOWED_SCHEMES = {"https", "http"}


class FetchError(RuntimeError):
    """Raised when a resource cannot be fetched."""


class SsrfError(FetchError):
    """Raised when a URL resolves to a private or reserved address."""


@dataclass
class FetchedResource:
    """A fetched response: raw Content-Type header (None if absent) and body bytes."""

    url: str
    content_type: str | None
    body: bytes
    charset: str | None = None

    def text(self) -> str:
        """Decode the body using the declared charset, falling back to UTF-8."""
        encoding = self.charset or "utf-8"
        try:
            return self.body.decode(encoding, errors="replace")
        except LookupError:
            return self.body.decode("utf-8", errors="replace")


def fetch_resource(
    url: str,
    timeout: float = DEFAULT_TIMEOUT,
    max_bytes: int = DEFAULT_MAX_BYTES,
    max_redirects: int = DEFAULT_MAX_REDIRECTS,
) -> FetchedResource:
    """Validate and fetch *url*.

    Raises:
        FetchError: On scheme/SSRF rejection, network error, too many redirects,
            or a body larger than *max_bytes*.
    """
    validate_scheme(url)
    check_ssrf(url)

    request = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
    opener = urllib.request.build_opener(_LimitedRedirectHandler(max_redirects))

    try:
        response: HTTPResponse = opener.open(request, timeout=timeout)
    except urllib.error.HTTPError as exc:
        # An HTTP error status still carries a body; extraction decides what it is worth.
        logger.warning("HTTP %s from %s", exc.code, url)
        response = exc
    except (urllib.error.URLError, OSError) as exc:
        raise FetchError(f"Failed to fetch URL '{url}': {exc}") from exc

    try:
        content_type = response.headers.get("Content-Type")
        charset = response.headers.get_content_charset()
        body = response.read(max_bytes + 1)
    finally:
        response.close()

    if len(body) > max_bytes:
        raise FetchError(
            f"Response body exceeds the {max_bytes:,}-byte limit for URL '{url}'."
        )

    logger.debug("fetched %s (%d bytes, content-type=%r)", url, len(body), content_type)
    return FetchedResource(url=url, content_type=content_type, body=body, charset=charset)


def validate_scheme(url: str) -> None:
    parsed = urllib.parse.urlparse(url)
    if parsed.scheme not in _ALLOWED_SCHEMES:
        raise FetchError(
            f"Unsupported URL scheme '{parsed.scheme}'. Only https:// and http:// are allowed."
        )


def check_ssrf(url: str) -> None:
    """Resolve the hostname and block private/reserved IP ranges.

    Raises SsrfError if any resolved address is private, loopback,
    link-local, or otherwise reserved.
    """
    parsed = urllib.parse.urlparse(url)
    hostname = parsed.hostname
    if not hostname:
        raise FetchError(f"URL has no hostname: {url}")

    try:
        addrinfos = socket.getaddrinfo(hostname, None)
    except socket.gaierror as exc:
        raise FetchError(f"DNS resolution failed for '{hostname}': {exc}") from exc

    for addrinfo in addrinfos:
        addr_str = addrinfo[4][0]
        try:
            ip = ipaddress.ip_address(addr_str)
        except ValueError:
            continue
        if (
            ip.is_private
            or ip.is_loopback
            or ip.is_link_local
            or ip.is_reserved
            or ip.is_multicast
            or ip.is_unspecified
        ):
            raise SsrfError(
                f"URL resolves to private address ({ip}). "
                "Access to internal network addresses is not allowed."
            )


class _LimitedRedirectHandler(urllib.request.HTTPRedirectHandler):
    """Raise an error after more than *max_redirects* redirects."""

    def __init__(self, max_redirects: int) -> None:
        self._max_redirects = max_redirects
        self._count = 0

    def redirect_request(self, req, fp, code, msg, headers, newurl):
        self._count += 1
        if self._count > self._max_redirects:
            raise FetchError(
                f"Too many redirects (>{self._max_redirects}) for URL '{req.full_url}'."
            )
        return super().redirect_request(req, fp, code, msg, headers, newurl)
