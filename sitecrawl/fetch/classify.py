"""Map raw httpx / Playwright / asyncio failures onto the crawler error taxonomy.

Callers see a domain-meaningful category (dns, ssl, timeout, blocked,
connection, http, automation) in the error's ``category``; the raw library
text only survives in ``details["reason"]``.
"""

from __future__ import annotations

import asyncio
import re

import httpx
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from sitecrawl.middleware.error_handler import (
    AutomationProtocolError,
    CrawlerError,
    FetchTimeoutError,
    NetworkError,
)

_DNS_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "temporary failure in name resolution",
    "getaddrinfo failed",
    "no address associated",
    "name resolution",
)

_SSL_MARKERS = ("ssl", "certificate", "tls", "handshake")

_BLOCKED_STATUSES = frozenset({401, 403, 407, 429})

# Chromium network error codes surfaced by Playwright, e.g. "net::ERR_NAME_NOT_RESOLVED"
_NET_ERR = re.compile(r"net::(ERR_[A-Z_]+)")

_NET_ERR_CATEGORIES: dict[str, str] = {
    "ERR_NAME_NOT_RESOLVED": "dns",
    "ERR_NAME_RESOLUTION_FAILED": "dns",
    "ERR_CERT_AUTHORITY_INVALID": "ssl",
    "ERR_CERT_COMMON_NAME_INVALID": "ssl",
    "ERR_CERT_DATE_INVALID": "ssl",
    "ERR_SSL_PROTOCOL_ERROR": "ssl",
    "ERR_SSL_VERSION_OR_CIPHER_MISMATCH": "ssl",
    "ERR_TIMED_OUT": "timeout",
    "ERR_CONNECTION_TIMED_OUT": "timeout",
    "ERR_BLOCKED_BY_CLIENT": "blocked",
    "ERR_BLOCKED_BY_RESPONSE": "blocked",
    "ERR_TUNNEL_CONNECTION_FAILED": "proxy",
    "ERR_PROXY_CONNECTION_FAILED": "proxy",
}


def _contains_any(text: str, markers: tuple[str, ...]) -> bool:
    lowered = text.lower()
    return any(marker in lowered for marker in markers)


def classify_http_error(exc: Exception, url: str | None = None) -> CrawlerError:
    """Classify an exception raised by the lightweight (httpx) fetch path."""
    if isinstance(exc, CrawlerError):
        return exc

    reason = f"{type(exc).__name__}: {exc}"

    if isinstance(exc, (httpx.TimeoutException, asyncio.TimeoutError)):
        return FetchTimeoutError(f"Request to {url} timed out", reason=reason)

    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if status in _BLOCKED_STATUSES:
            return NetworkError(
                f"Blocked by target site (HTTP {status})",
                category="blocked",
                status=status,
                reason=reason,
            )
        return NetworkError(
            f"Target site returned HTTP {status}",
            category="http",
            status=status,
            reason=reason,
        )

    if isinstance(exc, httpx.TooManyRedirects):
        return NetworkError("Too many redirects", category="http", reason=reason)

    text = str(exc)
    if isinstance(exc, (httpx.TransportError, OSError)):
        if isinstance(exc, httpx.ProxyError):
            return NetworkError("Proxy connection failed", category="proxy", reason=reason)
        if _contains_any(text, _DNS_MARKERS):
            return NetworkError(f"Could not resolve host for {url}", category="dns", reason=reason)
        if _contains_any(text, _SSL_MARKERS):
            return NetworkError(f"TLS failure connecting to {url}", category="ssl", reason=reason)
        return NetworkError(f"Connection to {url} failed", category="connection", reason=reason)

    return NetworkError(f"Request to {url} failed", reason=reason)


def classify_headless_error(exc: Exception, url: str | None = None) -> CrawlerError:
    """Classify an exception raised inside the headless render pipeline."""
    if isinstance(exc, CrawlerError):
        return exc

    reason = f"{type(exc).__name__}: {exc}"
    text = str(exc)

    if isinstance(exc, (PlaywrightTimeoutError, asyncio.TimeoutError)) or "Timeout" in text:
        return FetchTimeoutError(f"Navigation to {url} timed out", reason=reason)

    match = _NET_ERR.search(text)
    if match:
        code = match.group(1)
        category = _NET_ERR_CATEGORIES.get(code, "connection")
        if category == "timeout":
            return FetchTimeoutError(f"Navigation to {url} timed out", reason=reason, code=code)
        return NetworkError(
            f"Browser could not load {url}",
            category=category,
            reason=reason,
            code=code,
        )

    if "Target closed" in text or "has been closed" in text:
        return AutomationProtocolError(
            "Browser closed unexpectedly during render", reason=reason
        )

    if isinstance(exc, PlaywrightError):
        return AutomationProtocolError(reason=reason)

    if isinstance(exc, OSError):
        return NetworkError(f"Connection to {url} failed", category="connection", reason=reason)

    return AutomationProtocolError(reason=reason)
