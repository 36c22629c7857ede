"""Unit tests for FetchStrategySelector."""

from __future__ import annotations

import pytest

from sitecrawl.fetch.strategy import FetchStrategySelector
from sitecrawl.fetch.types import FetchResult, FetchStrategy


class _Recorder:
    def __init__(self, strategy: FetchStrategy) -> None:
        self.strategy = strategy
        self.calls: list[tuple[str, dict]] = []

    async def fetch(self, url, **kwargs):
        self.calls.append((url, kwargs))
        return FetchResult(html_content="<html></html>", final_url=url, strategy=self.strategy)


@pytest.fixture
def fetchers():
    return _Recorder(FetchStrategy.LIGHTWEIGHT), _Recorder(FetchStrategy.HEADLESS)


@pytest.fixture
def selector(fetchers):
    lightweight, headless = fetchers
    return FetchStrategySelector(lightweight, headless, ["Shopify", "wix"])


class TestDecide:
    def test_plain_site_is_lightweight(self, selector):
        decision = selector.decide("https://example.com/about")
        assert decision.use_headless is False
        assert decision.strategy is FetchStrategy.LIGHTWEIGHT

    def test_script_heavy_substring_is_headless(self, selector):
        assert selector.decide("https://store.myshopify.com/").use_headless is True
        assert selector.decide("https://SITE.WIXSITE.COM/home").use_headless is True

    def test_force_headless_wins(self, selector):
        assert selector.decide("https://example.com/", force_headless=True).strategy is FetchStrategy.HEADLESS

    def test_match_is_on_hostname_only(self, selector):
        assert selector.decide("https://example.com/wix/shopify").use_headless is False

    @pytest.mark.parametrize("url", ["not a url", "", "https://[::1"])
    def test_unparseable_url_is_lightweight(self, selector, url):
        assert selector.decide(url).use_headless is False

    def test_deterministic(self, selector):
        url = "https://shop.wix.com/"
        assert {selector.decide(url) for _ in range(5)} == {selector.decide(url)}


class TestFetch:
    @pytest.mark.asyncio
    async def test_routes_to_lightweight(self, selector, fetchers):
        lightweight, headless = fetchers
        result = await selector.fetch("https://example.com/")
        assert result.strategy is FetchStrategy.LIGHTWEIGHT
        assert lightweight.calls == [("https://example.com/", {})]
        assert headless.calls == []

    @pytest.mark.asyncio
    async def test_routes_to_headless(self, selector, fetchers):
        _, headless = fetchers
        await selector.fetch("https://example.com/", force_headless=True)
        assert headless.calls == [("https://example.com/", {"capture_screenshot": False})]

    @pytest.mark.asyncio
    async def test_screenshot_forces_headless(self, selector, fetchers):
        lightweight, headless = fetchers
        await selector.fetch("https://example.com/", capture_screenshot=True)
        assert lightweight.calls == []
        assert headless.calls == [("https://example.com/", {"capture_screenshot": True})]
