"""Per-URL choice between the lightweight fetcher and the headless pipeline."""

from __future__ import annotations

import logging
from urllib.parse import urlparse

from sitecrawl.fetch.headless import HeadlessRenderPipeline
from sitecrawl.fetch.lightweight import LightweightFetcher
from sitecrawl.fetch.types import FetchDecision, FetchResult

logger = logging.getLogger(__name__)


class FetchStrategySelector:
    """Routes each URL to a fetcher.

    Headless rendering is chosen when forced by the caller or when the URL's
    hostname contains one of the configured script-heavy site substrings.
    """

    def __init__(
        self,
        lightweight: LightweightFetcher,
        headless: HeadlessRenderPipeline,
        script_heavy_sites: list[str],
    ) -> None:
        self._lightweight = lightweight
        self._headless = headless
        self._script_heavy_sites = [site.lower() for site in script_heavy_sites if site]

    def decide(self, url: str, force_headless: bool = False) -> FetchDecision:
        if force_headless:
            return FetchDecision(use_headless=True)
        try:
            hostname = (urlparse(url).hostname or "").lower()
        except ValueError:
            return FetchDecision(use_headless=False)
        if not hostname:
            return FetchDecision(use_headless=False)
        return FetchDecision(
            use_headless=any(site in hostname for site in self._script_heavy_sites)
        )

    async def fetch(
        self,
        url: str,
        *,
        force_headless: bool = False,
        capture_screenshot: bool = False,
    ) -> FetchResult:
        """Fetch *url* with the strategy :meth:`decide` picks.

        Screenshots are only available from the headless pipeline, so asking
        for one forces headless rendering.
        """
        decision = self.decide(url, force_headless or capture_screenshot)
        logger.debug(
            "Fetching with %s strategy",
            decision.strategy.value,
            extra={"target_url": url, "fetch_strategy": decision.strategy.value},
        )
        if decision.use_headless:
            return await self._headless.fetch(url, capture_screenshot=capture_screenshot)
        return await self._lightweight.fetch(url)
