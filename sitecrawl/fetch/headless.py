"""Headless render pipeline.

A render runs through fixed stages::

    LAUNCH -> NAVIGATE -> SETTLE -> CAPTURE -> CLOSE

Any failure in LAUNCH, NAVIGATE, SETTLE or CAPTURE ends the run at CLOSE and
takes the single FALLBACK edge: the same URL is re-fetched through the
lightweight fetcher. If the fallback fails too, the headless error is raised
as :class:`AllStrategiesFailedError`, keeping its category (timeout, dns,
automation, ...) and the failing stage in the error details.

CLOSE always runs, whether the render succeeded or not, so a fetch never
leaks a browser.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from playwright.async_api import Error as PlaywrightError

from sitecrawl.browser.fingerprint import WEBDRIVER_OVERRIDE_JS, FingerprintRandomizer
from sitecrawl.browser.launcher import BrowserLauncher
from sitecrawl.config.fetch_heuristics import DEFAULT_COOKIE_SELECTORS
from sitecrawl.fetch.classify import classify_headless_error
from sitecrawl.fetch.lightweight import LightweightFetcher
from sitecrawl.fetch.types import FetchResult, FetchStrategy
from sitecrawl.middleware.error_handler import (
    AllStrategiesFailedError,
    CrawlerError,
    FetchTimeoutError,
    NetworkError,
)
from sitecrawl.proxy.manager import ProxyManager
from sitecrawl.proxy.types import ProxyEndpoint

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


# ---------------------------------------------------------------------------
# Page scripts
# ---------------------------------------------------------------------------

# Scroll to the bottom in small steps so intersection observers fire.
_SCROLL_TO_BOTTOM_JS = """
async () => {
    await new Promise((resolve) => {
        let totalHeight = 0;
        let steps = 0;
        const distance = 50;
        const maxSteps = 200;
        const timer = setInterval(() => {
            const scrollHeight = document.body.scrollHeight;
            const currentScroll = window.pageYOffset || document.documentElement.scrollTop;
            window.scrollBy(0, distance);
            totalHeight += distance;
            steps += 1;
            if (
                totalHeight >= scrollHeight
                || currentScroll + distance >= scrollHeight
                || steps >= maxSteps
            ) {
                clearInterval(timer);
                resolve();
            }
        }, 50);
    });
}
"""

_LAZY_INTO_VIEW_JS = """
() => {
    document
        .querySelectorAll('img[data-src], img[data-lazy-src], img[data-original], img[loading="lazy"]')
        .forEach((img) => img.scrollIntoView({ behavior: 'instant', block: 'center' }));
}
"""

_FORCE_LAZY_IMAGES_JS = """
() => {
    document.querySelectorAll('img').forEach((img) => {
        const lazy = img.dataset.src || img.dataset.lazySrc || img.dataset.original || img.dataset.image;
        if (!img.getAttribute('src') && lazy) {
            img.src = lazy;
        }
        img.loading = 'eager';
    });
}
"""

_WAIT_FOR_IMAGES_JS = """
() => Promise.all(
    Array.from(document.images)
        .filter((img) => !img.complete)
        .map((img) => new Promise((resolve) => { img.onload = img.onerror = resolve; }))
)
"""


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------


class RenderStage(str, Enum):
    LAUNCH = "launch"
    NAVIGATE = "navigate"
    SETTLE = "settle"
    CAPTURE = "capture"
    CLOSE = "close"
    FALLBACK = "fallback"


_NEXT_STAGE: dict[RenderStage, RenderStage] = {
    RenderStage.LAUNCH: RenderStage.NAVIGATE,
    RenderStage.NAVIGATE: RenderStage.SETTLE,
    RenderStage.SETTLE: RenderStage.CAPTURE,
    RenderStage.CAPTURE: RenderStage.CLOSE,
}


@dataclass
class HeadlessTimeouts:
    """Waits and deadlines used by the pipeline, all in milliseconds."""

    navigation_ms: int = 60000
    screenshot_navigation_ms: int = 180000
    selector_ms: int = 5000
    image_load_ms: int = 2000
    scroll_wait_ms: int = 1500
    cookie_wait_ms: int = 1000
    script_ms: int = 15000
    scroll_passes: int = 3


@dataclass
class RenderRun:
    """Mutable state of one pass through the pipeline."""

    url: str
    capture_screenshot: bool = False
    proxy: ProxyEndpoint | None = None
    browser: Any = None
    page: Any = None
    result: FetchResult | None = None
    error: Exception | None = None
    failed_stage: RenderStage | None = None
    stages: list[RenderStage] = field(default_factory=list)


class HeadlessRenderPipeline:
    """Renders a page in a fresh headless browser, falling back to plain HTTP."""

    def __init__(
        self,
        launcher: BrowserLauncher,
        fallback: LightweightFetcher,
        *,
        proxy_manager: ProxyManager | None = None,
        cookie_selectors: list[str] | None = None,
        fingerprints: FingerprintRandomizer | None = None,
        timeouts: HeadlessTimeouts | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._launcher = launcher
        self._fallback = fallback
        self._proxy_manager = proxy_manager
        self._cookie_selectors = list(
            DEFAULT_COOKIE_SELECTORS if cookie_selectors is None else cookie_selectors
        )
        self._fingerprints = fingerprints or FingerprintRandomizer()
        self._timeouts = timeouts or HeadlessTimeouts()
        self._sleep = sleep
        self._handlers: dict[RenderStage, Callable[[RenderRun], Awaitable[None]]] = {
            RenderStage.LAUNCH: self._launch,
            RenderStage.NAVIGATE: self._navigate,
            RenderStage.SETTLE: self._settle,
            RenderStage.CAPTURE: self._capture,
        }

    async def fetch(self, url: str, *, capture_screenshot: bool = False) -> FetchResult:
        """Render *url*; on any stage failure re-fetch it through the fallback."""
        run = RenderRun(url=url, capture_screenshot=capture_screenshot)
        started = time.monotonic()
        stage = RenderStage.LAUNCH
        try:
            while stage is not RenderStage.CLOSE:
                run.stages.append(stage)
                try:
                    await self._handlers[stage](run)
                except Exception as exc:
                    run.error = exc
                    run.failed_stage = stage
                    break
                stage = _NEXT_STAGE[stage]
        finally:
            run.stages.append(RenderStage.CLOSE)
            await self._close(run)

        if run.error is None and run.result is not None:
            if run.proxy is not None and self._proxy_manager is not None:
                self._proxy_manager.record_success(run.proxy)
            logger.info(
                "Headless render complete",
                extra={
                    "target_url": url,
                    "final_url": run.result.final_url,
                    "fetch_strategy": FetchStrategy.HEADLESS.value,
                    "duration_ms": round((time.monotonic() - started) * 1000, 1),
                },
            )
            return run.result

        return await self._fall_back(run)

    # ------------------------------------------------------------------
    # Stage handlers
    # ------------------------------------------------------------------

    async def _launch(self, run: RenderRun) -> None:
        if self._proxy_manager is not None and self._proxy_manager.enabled:
            run.proxy = self._proxy_manager.next_proxy()
        run.browser = await self._launcher.launch(run.proxy)
        profile = self._fingerprints.generate()
        context = await run.browser.new_context(**profile.context_options())
        await context.add_init_script(WEBDRIVER_OVERRIDE_JS)
        run.page = await context.new_page()

    async def _navigate(self, run: RenderRun) -> None:
        timeout_ms = (
            self._timeouts.screenshot_navigation_ms
            if run.capture_screenshot
            else self._timeouts.navigation_ms
        )
        await run.page.goto(run.url, wait_until="networkidle", timeout=timeout_ms)

    async def _settle(self, run: RenderRun) -> None:
        page = run.page
        t = self._timeouts

        for _ in range(t.scroll_passes):
            await self._evaluate(page, _SCROLL_TO_BOTTOM_JS)
            await self._sleep(t.scroll_wait_ms / 1000)
            await self._evaluate(page, _LAZY_INTO_VIEW_JS)
            await self._sleep(t.cookie_wait_ms / 1000)
        await self._evaluate(page, "() => window.scrollTo(0, 0)")

        await self._evaluate(page, _FORCE_LAZY_IMAGES_JS)
        await self._sleep(t.image_load_ms / 1000)

        await self.dismiss_cookie_banner(page)

        try:
            await page.wait_for_selector("body", timeout=t.selector_ms)
        except PlaywrightError:
            logger.debug("Body selector not found, continuing", extra={"target_url": run.url})

        try:
            await self._evaluate(page, _WAIT_FOR_IMAGES_JS, timeout_ms=t.selector_ms)
        except FetchTimeoutError:
            logger.debug("Images still loading after wait", extra={"target_url": run.url})

    async def _evaluate(self, page: Any, script: str, *, timeout_ms: int | None = None) -> Any:
        """Run *script* in the page, giving up after ``timeout_ms``."""
        if timeout_ms is None:
            timeout_ms = self._timeouts.script_ms
        try:
            return await asyncio.wait_for(page.evaluate(script), timeout=timeout_ms / 1000)
        except asyncio.TimeoutError as exc:
            raise FetchTimeoutError(
                f"Page script did not finish within {timeout_ms}ms",
                reason="script timeout",
            ) from exc

    async def dismiss_cookie_banner(self, page: Any) -> str | None:
        """Click the first matching cookie-consent control.

        Returns the selector that matched, or ``None``.
        """
        for selector in self._cookie_selectors:
            try:
                button = await page.query_selector(selector)
                if button is None:
                    continue
                await button.click(timeout=self._timeouts.selector_ms)
            except PlaywrightError:
                continue
            await self._sleep(self._timeouts.cookie_wait_ms / 1000)
            logger.debug("Dismissed cookie banner via %s", selector)
            return selector
        return None

    async def _capture(self, run: RenderRun) -> None:
        page = run.page
        html_content = await page.content()
        final_url = page.url

        screenshot: str | None = None
        if run.capture_screenshot:
            try:
                png = await page.screenshot(type="png", full_page=True)
                screenshot = "data:image/png;base64," + base64.b64encode(png).decode("ascii")
            except PlaywrightError as exc:
                logger.warning(
                    "Screenshot capture failed: %s",
                    exc,
                    extra={"target_url": run.url},
                )

        run.result = FetchResult(
            html_content=html_content,
            final_url=final_url,
            strategy=FetchStrategy.HEADLESS,
            screenshot=screenshot,
        )

    async def _close(self, run: RenderRun) -> None:
        if run.browser is None:
            return
        try:
            await run.browser.close()
        except Exception:
            logger.debug("Error closing browser (may already be closed)", exc_info=True)
        run.browser = None
        run.page = None

    # ------------------------------------------------------------------
    # Fallback
    # ------------------------------------------------------------------

    async def _fall_back(self, run: RenderRun) -> FetchResult:
        assert run.error is not None and run.failed_stage is not None
        headless_error = classify_headless_error(run.error, run.url)

        if (
            run.proxy is not None
            and self._proxy_manager is not None
            and run.failed_stage is RenderStage.NAVIGATE
            and isinstance(headless_error, (NetworkError, FetchTimeoutError))
        ):
            self._proxy_manager.record_failure(run.proxy)

        run.stages.append(RenderStage.FALLBACK)
        logger.warning(
            "Headless render failed at %s stage, falling back to lightweight fetch: %s",
            run.failed_stage.value,
            headless_error.message,
            extra={
                "target_url": run.url,
                "error_category": headless_error.category,
                "error_reason": headless_error.details.get("reason", ""),
            },
        )

        try:
            return await self._fallback.fetch(run.url)
        except CrawlerError as fallback_error:
            raise AllStrategiesFailedError(
                headless_error.message,
                category=headless_error.category,
                stage=run.failed_stage.value,
                fallback_error=fallback_error.message,
                fallback_category=fallback_error.category,
                **headless_error.details,
            ) from run.error
