"""Proxy data models for the proxy manager."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from urllib.parse import quote, unquote, urlparse


@dataclass
class ProxyEndpoint:
    """A single proxy endpoint with health and usage tracking.

    ``url`` is the canonical connection URL and doubles as the endpoint's
    identity inside the pool.
    """

    host: str
    port: int
    protocol: str = "http"  # http, https, socks5
    username: str | None = None
    password: str | None = None
    url: str = field(init=False)
    is_healthy: bool = True
    consecutive_failures: int = 0
    total_requests: int = 0
    successful_requests: int = 0
    last_used: datetime | None = None
    last_checked: datetime | None = None
    response_time_ms: float | None = None

    def __post_init__(self) -> None:
        self.protocol = (self.protocol or "http").lower()
        self.url = format_proxy_url(
            self.host, self.port, self.protocol, self.username, self.password
        )

    @classmethod
    def from_url(cls, raw_url: str) -> "ProxyEndpoint":
        """Build an endpoint from ``scheme://[user:pass@]host:port``.

        Raises ``ValueError`` when the host or port is missing.
        """
        parsed = urlparse(raw_url.strip())
        if not parsed.hostname:
            raise ValueError(f"Proxy URL has no host: {raw_url!r}")
        port = parsed.port
        if port is None:
            raise ValueError(f"Proxy URL has no port: {raw_url!r}")
        return cls(
            host=parsed.hostname,
            port=port,
            protocol=parsed.scheme or "http",
            username=unquote(parsed.username) if parsed.username else None,
            password=unquote(parsed.password) if parsed.password else None,
        )

    @property
    def server(self) -> str:
        """Connection URL without credentials."""
        return f"{self.protocol}://{self.host}:{self.port}"

    @property
    def success_rate(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return round(self.successful_requests / self.total_requests * 100, 2)

    def playwright_proxy(self) -> dict[str, str]:
        """Render this endpoint as a Playwright ``proxy`` option."""
        settings: dict[str, str] = {"server": self.server}
        if self.username:
            settings["username"] = self.username
        if self.password:
            settings["password"] = self.password
        return settings


def format_proxy_url(
    host: str,
    port: int,
    protocol: str = "http",
    username: str | None = None,
    password: str | None = None,
) -> str:
    """Return the canonical connection URL for a proxy.

    Credentials are embedded only when both username and password are set.
    """
    if username and password:
        return f"{protocol}://{quote(username, safe='')}:{quote(password, safe='')}@{host}:{port}"
    return f"{protocol}://{host}:{port}"
