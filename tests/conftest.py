"""Shared test fixtures, fakes and hypothesis strategies for the crawler test suite."""

from __future__ import annotations

import os

import httpx
import pytest
from hypothesis import strategies as st

from sitecrawl.config.settings import CrawlerSettings
from sitecrawl.fetch.types import FetchResult, FetchStrategy


# ---------------------------------------------------------------------------
# Ensure required env vars are set for CrawlerSettings in tests
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _set_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set minimal env vars so CrawlerSettings can be instantiated in tests."""
    if "CRAWLER_SERVICE_KEY" not in os.environ:
        monkeypatch.setenv("CRAWLER_SERVICE_KEY", "test-key")


# ---------------------------------------------------------------------------
# Settings fixture
# ---------------------------------------------------------------------------

@pytest.fixture
def settings() -> CrawlerSettings:
    """Test settings with safe defaults."""
    return CrawlerSettings(
        service_key="test-key",
        block_private_targets=False,
        proxy_endpoints=["http://proxy1:8080", "http://proxy2:8080"],
    )


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

def mock_client_factory(handler):
    """Client factory for LightweightFetcher backed by ``httpx.MockTransport``.

    Records the proxy passed for each attempt in ``factory.proxies``.
    """
    proxies: list = []

    def factory(proxy):
        proxies.append(proxy)
        return httpx.AsyncClient(
            transport=httpx.MockTransport(handler),
            follow_redirects=True,
            max_redirects=5,
        )

    factory.proxies = proxies  # type: ignore[attr-defined]
    return factory


class FakeSelector:
    """Stand-in for FetchStrategySelector serving canned pages from a dict.

    Values are HTML strings or exceptions to raise. Unknown URLs raise
    ``KeyError``.
    """

    def __init__(self, pages: dict[str, object]) -> None:
        self.pages = pages
        self.fetched: list[str] = []

    async def fetch(self, url: str, *, force_headless: bool = False, capture_screenshot: bool = False) -> FetchResult:
        self.fetched.append(url)
        page = self.pages[url]
        if isinstance(page, Exception):
            raise page
        return FetchResult(html_content=page, final_url=url, strategy=FetchStrategy.LIGHTWEIGHT)


async def no_sleep(_seconds: float) -> None:
    return None


# ---------------------------------------------------------------------------
# Hypothesis strategies (reusable across property tests)
# ---------------------------------------------------------------------------

# Proxy URLs with unique ports
proxy_urls = st.integers(min_value=8001, max_value=9999).map(
    lambda port: f"http://proxy{port}:{port}"
)

# Sequences of recorded request outcomes (True = success)
event_sequences = st.lists(st.booleans(), min_size=1, max_size=50)
