"""Plain HTTP fetcher for pages that do not need script execution.

Issues a single GET with a realistic browser header set, a fixed timeout and
bounded redirect following. When the proxy pool is enabled the request is
routed through rotating proxies with failover: a failed attempt is recorded
against its proxy and the next proxy is tried, up to ``max_retries`` attempts.
A plain HTTP error status from the target is not the proxy's fault and is
raised at once.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

import httpx

from sitecrawl.config.settings import DEFAULT_USER_AGENT
from sitecrawl.fetch.classify import classify_http_error
from sitecrawl.fetch.types import FetchResult, FetchStrategy
from sitecrawl.middleware.error_handler import CrawlerError, ProxyExhaustedError
from sitecrawl.proxy.manager import ProxyManager
from sitecrawl.proxy.types import ProxyEndpoint

logger = logging.getLogger(__name__)

ClientFactory = Callable[[ProxyEndpoint | None], httpx.AsyncClient]

# Failure categories that rotate to another proxy and count against this one
_PROXY_FAULT_CATEGORIES = frozenset({"connection", "dns", "ssl", "timeout", "proxy", "blocked"})


def build_request_headers(user_agent: str, accept_language: str) -> dict[str, str]:
    """Header set mimicking a top-level browser navigation."""
    return {
        "User-Agent": user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
        "Accept-Language": accept_language,
        "Connection": "keep-alive",
        "Upgrade-Insecure-Requests": "1",
        "Sec-Fetch-Dest": "document",
        "Sec-Fetch-Mode": "navigate",
        "Sec-Fetch-Site": "none",
    }


class LightweightFetcher:
    """HTTP GET fetcher with optional proxy failover."""

    def __init__(
        self,
        proxy_manager: ProxyManager | None = None,
        *,
        timeout_seconds: float = 30.0,
        max_redirects: int = 5,
        max_retries: int = 3,
        user_agent: str = DEFAULT_USER_AGENT,
        accept_language: str = "nl-NL,nl;q=0.9,en-US;q=0.8,en;q=0.7",
        client_factory: ClientFactory | None = None,
    ) -> None:
        self._proxy_manager = proxy_manager
        self._timeout_seconds = timeout_seconds
        self._max_redirects = max_redirects
        self._max_retries = max_retries
        self._headers = build_request_headers(user_agent, accept_language)
        self._client_factory = client_factory or self._default_client

    def _default_client(self, proxy: ProxyEndpoint | None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            proxy=proxy.url if proxy is not None else None,
            timeout=httpx.Timeout(self._timeout_seconds),
            follow_redirects=True,
            max_redirects=self._max_redirects,
            headers=self._headers,
        )

    async def fetch(self, url: str) -> FetchResult:
        """Fetch *url*, failing over across proxies when the pool is enabled.

        Raises a classified :class:`CrawlerError`. When every proxy attempt
        fails, the last attempt's error is raised with ``proxy_attempts`` in
        its details. :class:`ProxyExhaustedError` is raised only when no
        endpoint could be obtained and the direct attempt failed too.
        """
        if self._proxy_manager is None or not self._proxy_manager.enabled:
            return await self._attempt(url, None)

        last_error: CrawlerError | None = None
        attempts = 0
        for attempt in range(1, self._max_retries + 1):
            proxy = self._proxy_manager.next_proxy()
            if proxy is None:
                break
            attempts = attempt
            try:
                result = await self._attempt(url, proxy)
            except CrawlerError as exc:
                if exc.category not in _PROXY_FAULT_CATEGORIES:
                    # The proxy relayed the target's answer
                    self._proxy_manager.record_success(proxy)
                    raise
                self._proxy_manager.record_failure(proxy)
                last_error = exc
                logger.warning(
                    "Proxy attempt %d/%d failed: %s",
                    attempt,
                    self._max_retries,
                    exc.message,
                    extra={
                        "target_url": url,
                        "proxy_used": proxy.server,
                        "error_category": exc.category,
                    },
                )
                continue
            self._proxy_manager.record_success(proxy)
            return result

        if last_error is not None:
            last_error.details["proxy_attempts"] = attempts
            raise last_error

        # Pool emptied between the enabled check and selection
        try:
            return await self._attempt(url, None)
        except CrawlerError as exc:
            raise ProxyExhaustedError(
                f"No proxy available and direct fetch of {url} failed",
                last_category=exc.category,
                last_error=exc.message,
                **exc.details,
            ) from exc

    async def _attempt(self, url: str, proxy: ProxyEndpoint | None) -> FetchResult:
        started = time.monotonic()
        try:
            async with self._client_factory(proxy) as client:
                response = await client.get(url)
                response.raise_for_status()
        except Exception as exc:
            raise classify_http_error(exc, url) from exc

        logger.debug(
            "Lightweight fetch complete (HTTP %d)",
            response.status_code,
            extra={
                "target_url": url,
                "proxy_used": proxy.server if proxy else None,
                "fetch_strategy": FetchStrategy.LIGHTWEIGHT.value,
                "duration_ms": round((time.monotonic() - started) * 1000, 1),
            },
        )
        return FetchResult(
            html_content=response.text,
            final_url=str(response.url),
            strategy=FetchStrategy.LIGHTWEIGHT,
        )
