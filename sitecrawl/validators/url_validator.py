"""URL validation for crawl targets: syntax checks and SSRF protection."""

from __future__ import annotations

import asyncio
import ipaddress
import socket
from urllib.parse import urlparse

from sitecrawl.middleware.error_handler import InvalidUrlError

# Private/reserved IP networks
_PRIVATE_NETWORKS = [
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("169.254.0.0/16"),
    ipaddress.ip_network("0.0.0.0/8"),
    ipaddress.ip_network("::1/128"),
    ipaddress.ip_network("fc00::/7"),
    ipaddress.ip_network("fe80::/10"),
]

_ALLOWED_SCHEMES = {"http", "https"}


def is_private_ip(ip_str: str) -> bool:
    """Check if an IP address is in a private/reserved range."""
    try:
        addr = ipaddress.ip_address(ip_str.split("%", 1)[0])
        return any(addr in network for network in _PRIVATE_NETWORKS)
    except ValueError:
        return True  # Invalid IP → reject


def check_url_syntax(url: str) -> str:
    """Return *url* stripped of surrounding whitespace if it is a usable http(s) URL.

    Raises :class:`InvalidUrlError` for anything else.
    """
    candidate = (url or "").strip()
    try:
        parsed = urlparse(candidate)
        hostname = parsed.hostname
        parsed.port  # raises ValueError for a non-numeric port
    except ValueError as exc:
        raise InvalidUrlError(f"Malformed URL: {candidate!r}", reason=str(exc)) from exc

    if parsed.scheme.lower() not in _ALLOWED_SCHEMES:
        raise InvalidUrlError(
            f"Unsupported URL scheme {parsed.scheme!r}; only http and https are allowed",
            url=candidate,
        )
    if not hostname:
        raise InvalidUrlError(f"URL has no host: {candidate!r}", url=candidate)
    return candidate


async def validate_url(url: str) -> bool:
    """Validate a crawl target URL.

    Returns True if the URL is safe to fetch (valid scheme, public IP).
    Returns False if the URL is malformed or resolves to a private IP.
    """
    try:
        hostname = urlparse(check_url_syntax(url)).hostname
        loop = asyncio.get_running_loop()
        infos = await loop.getaddrinfo(hostname, None)
        for info in infos:
            ip = info[4][0]
            if is_private_ip(ip):
                return False
        return True
    except (InvalidUrlError, socket.gaierror, ValueError, OSError):
        return False
