"""Playwright browser launcher.

Every headless fetch gets its own freshly launched Chromium instance, which
the caller must close. Only the Playwright driver process is shared; it is
started lazily on first launch and stopped on application shutdown.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from playwright.async_api import Browser

    from sitecrawl.proxy.types import ProxyEndpoint

logger = logging.getLogger(__name__)

# Chromium flags for containerized / headless operation
CHROMIUM_ARGS: list[str] = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-blink-features=AutomationControlled",
]


class BrowserLauncher:
    """Launches isolated Chromium instances, one per fetch."""

    def __init__(self) -> None:
        self._playwright: Any = None
        self._lock = asyncio.Lock()
        self._launched: int = 0

    async def _ensure_started(self) -> Any:
        async with self._lock:
            if self._playwright is None:
                from playwright.async_api import async_playwright

                self._playwright = await async_playwright().start()
                logger.info("Playwright driver started")
            return self._playwright

    async def launch(self, proxy: "ProxyEndpoint | None" = None) -> "Browser":
        """Launch a new headless Chromium, optionally egressing through *proxy*."""
        playwright = await self._ensure_started()
        launch_kwargs: dict = {"headless": True, "args": CHROMIUM_ARGS}
        if proxy is not None:
            launch_kwargs["proxy"] = proxy.playwright_proxy()
        browser = await playwright.chromium.launch(**launch_kwargs)
        self._launched += 1
        return browser

    async def stop(self) -> None:
        """Stop the Playwright driver if it was started."""
        async with self._lock:
            if self._playwright is not None:
                await self._playwright.stop()
                self._playwright = None
                logger.info("Playwright driver stopped")

    def get_stats(self) -> dict:
        return {"started": self._playwright is not None, "browsers_launched": self._launched}
