"""FastAPI application entry point with lifespan management.

create_app: load settings, build the proxy manager, fetchers, strategy
selector, frontier scheduler and session manager, mount routers.
Startup: configure logging, load the proxy pool, start the proxy health
sweep and the session eviction sweep.
Shutdown: cancel running crawls, stop background sweeps, stop the Playwright
driver.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass

from fastapi import FastAPI

from sitecrawl.browser.fingerprint import FingerprintRandomizer
from sitecrawl.browser.launcher import BrowserLauncher
from sitecrawl.config.fetch_heuristics import load_fetch_heuristics
from sitecrawl.config.settings import CrawlerSettings
from sitecrawl.extraction.basic import BasicPageExtractor
from sitecrawl.fetch.headless import HeadlessRenderPipeline, HeadlessTimeouts
from sitecrawl.fetch.lightweight import LightweightFetcher
from sitecrawl.fetch.strategy import FetchStrategySelector
from sitecrawl.logging_config import configure_logging
from sitecrawl.middleware.auth import ServiceKeyAuthMiddleware
from sitecrawl.middleware.error_handler import register_error_handlers
from sitecrawl.middleware.request_id import RequestIdMiddleware
from sitecrawl.proxy.manager import ProxyManager
from sitecrawl.routers.crawl import create_crawl_router
from sitecrawl.routers.health import create_health_router
from sitecrawl.routers.proxy import create_proxy_router
from sitecrawl.routers.scrape import create_scrape_router
from sitecrawl.services.frontier import FrontierScheduler
from sitecrawl.services.session_manager import CrawlSessionManager

logger = logging.getLogger(__name__)


@dataclass
class Components:
    """Service objects shared by the routers and the lifespan."""

    settings: CrawlerSettings
    proxy_manager: ProxyManager
    launcher: BrowserLauncher
    selector: FetchStrategySelector
    extractor: BasicPageExtractor
    session_manager: CrawlSessionManager


def build_components(settings: CrawlerSettings) -> Components:
    """Wire the fetch / crawl stack from *settings*. Performs no I/O."""
    heuristics = load_fetch_heuristics(settings.fetch_heuristics_path)

    proxy_manager = ProxyManager(
        enabled=settings.proxy_enabled,
        failure_threshold=settings.proxy_failure_threshold,
        health_check_url=settings.proxy_health_check_url,
        health_check_timeout_seconds=settings.proxy_health_check_timeout_seconds,
        health_check_interval_seconds=settings.proxy_health_check_interval_seconds,
    )

    lightweight = LightweightFetcher(
        proxy_manager,
        timeout_seconds=settings.request_timeout_seconds,
        max_redirects=settings.max_redirects,
        max_retries=settings.proxy_max_retries,
        user_agent=settings.user_agent,
        accept_language=settings.accept_language,
    )

    launcher = BrowserLauncher()
    headless = HeadlessRenderPipeline(
        launcher,
        lightweight,
        proxy_manager=proxy_manager,
        cookie_selectors=heuristics.cookie_selectors,
        fingerprints=FingerprintRandomizer(
            user_agent=settings.user_agent,
            accept_language=settings.accept_language,
        ),
        timeouts=HeadlessTimeouts(
            navigation_ms=settings.navigation_timeout_ms,
            screenshot_navigation_ms=settings.screenshot_navigation_timeout_ms,
            selector_ms=settings.selector_timeout_ms,
            image_load_ms=settings.image_load_wait_ms,
            scroll_wait_ms=settings.scroll_wait_ms,
            cookie_wait_ms=settings.cookie_wait_ms,
            script_ms=settings.script_timeout_ms,
            scroll_passes=settings.scroll_passes,
        ),
    )

    selector = FetchStrategySelector(lightweight, headless, heuristics.script_heavy_sites)
    extractor = BasicPageExtractor()
    session_manager = CrawlSessionManager(
        FrontierScheduler(selector, extractor),
        retention_seconds=settings.session_retention_seconds,
        sweep_interval_seconds=settings.session_sweep_interval_seconds,
    )

    return Components(
        settings=settings,
        proxy_manager=proxy_manager,
        launcher=launcher,
        selector=selector,
        extractor=extractor,
        session_manager=session_manager,
    )


async def _cancel(task: asyncio.Task) -> None:
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task


def create_app(settings: CrawlerSettings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Loads ``CrawlerSettings`` eagerly so that a missing ``CRAWLER_SERVICE_KEY``
    environment variable causes an immediate startup failure rather than
    silently falling back to a placeholder value.
    """
    settings = settings or CrawlerSettings()  # type: ignore[call-arg]
    components = build_components(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan: startup and shutdown logic."""
        configure_logging(settings.log_level)
        logger.info("Starting crawler service on port %d", settings.port)

        proxy_manager = components.proxy_manager
        await proxy_manager.initialize(settings.proxy_endpoints)

        background: list[asyncio.Task] = [
            asyncio.create_task(components.session_manager.sweep_loop()),
        ]
        if settings.proxy_enabled:
            background.append(asyncio.create_task(proxy_manager.health_check_loop()))

        logger.info("Crawler service started successfully")

        yield

        # --- Shutdown ---
        logger.info("Shutting down crawler service…")

        try:
            await asyncio.wait_for(
                components.session_manager.shutdown(),
                timeout=settings.graceful_shutdown_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning("Crawl sessions did not stop within %ds", settings.graceful_shutdown_seconds)

        for task in background:
            await _cancel(task)

        await components.launcher.stop()
        logger.info("Crawler service shut down")

    app = FastAPI(
        title="Sitecrawl Fetch & Crawl Service",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.components = components

    # Register error handlers
    register_error_handlers(app)

    # Middleware (order: request_id → auth → error_handler)
    # Note: Starlette middleware is applied in reverse order of add_middleware calls
    app.add_middleware(ServiceKeyAuthMiddleware, service_key=settings.service_key)
    app.add_middleware(RequestIdMiddleware)

    # Mount routers
    app.include_router(
        create_health_router(
            proxy_manager=components.proxy_manager,
            session_manager=components.session_manager,
            launcher=components.launcher,
        )
    )
    app.include_router(
        create_crawl_router(
            session_manager=components.session_manager,
            block_private_targets=settings.block_private_targets,
        )
    )
    app.include_router(
        create_scrape_router(
            selector=components.selector,
            extractor=components.extractor,
            block_private_targets=settings.block_private_targets,
        )
    )
    app.include_router(create_proxy_router(proxy_manager=components.proxy_manager))

    return app
