"""Breadth-first frontier scheduler.

Drives one crawl session: dequeues ``(url, depth)`` entries, applies the
depth / exclusion / domain policy, fetches each admitted URL exactly once
through the fetch strategy selector, hands the markup to the page extractor
and grows the frontier from the page's outbound links.

The loop stops when the queue is empty or ``max_pages`` pages have been
collected, whichever comes first. A failed page is logged and skipped; it
never ends the crawl.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from sitecrawl.extraction.base import PageExtractor
from sitecrawl.fetch.strategy import FetchStrategySelector
from sitecrawl.middleware.error_handler import CrawlerError
from sitecrawl.models.requests import CrawlSession, FrontierEntry
from sitecrawl.services.links import extract_links, hostname_of, is_domain_allowed, is_excluded

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


class ProgressListener(Protocol):
    """Receives progress updates from a running crawl."""

    def on_progress(
        self,
        current: int,
        total: int,
        message: str,
        current_url: str | None = None,
    ) -> None: ...


class FrontierScheduler:
    """Runs the BFS crawl loop for a session."""

    def __init__(
        self,
        selector: FetchStrategySelector,
        extractor: PageExtractor,
        *,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._selector = selector
        self._extractor = extractor
        self._sleep = sleep

    async def run(self, session: CrawlSession, listener: ProgressListener | None = None) -> dict:
        """Crawl from ``session.start_url`` and return the final result payload.

        The payload has ``start_url``, ``total_pages``, ``pages``,
        ``visited_urls`` and ``summary`` (field-wise sum of every page's stats).
        """
        options = session.options
        base_hostname = hostname_of(session.start_url)
        enqueued: set[str] = {entry.url for entry in session.queue}
        if not session.queue and not session.visited:
            session.queue.append(FrontierEntry(url=session.start_url, depth=0))
            enqueued.add(session.start_url)

        def report(message: str, current_url: str | None = None) -> None:
            if listener is not None:
                listener.on_progress(len(session.pages), options.max_pages, message, current_url)

        started = time.monotonic()
        logger.info(
            "Starting crawl (max_pages=%d, max_depth=%d)",
            options.max_pages,
            options.max_depth,
            extra={"session_id": session.id, "target_url": session.start_url},
        )

        while session.queue and len(session.pages) < options.max_pages:
            entry = session.queue.popleft()
            url, depth = entry.url, entry.depth

            if url in session.visited or depth > options.max_depth:
                report(f"Skipping {url}", url)
                continue

            if is_excluded(url, options.exclude_patterns):
                logger.debug("Skipping excluded URL", extra={"session_id": session.id, "target_url": url})
                continue

            if not is_domain_allowed(url, base_hostname, options):
                logger.debug("Skipping external URL", extra={"session_id": session.id, "target_url": url})
                continue

            session.mark_visited(url)
            order = len(session.pages) + 1
            report(f"Scraping page {order}/{options.max_pages} (depth {depth})", url)

            try:
                result = await self._selector.fetch(
                    url,
                    force_headless=options.force_headless,
                    capture_screenshot=options.capture_screenshots,
                )
                record = self._extractor.extract(result.html_content, result.final_url)
            except Exception as exc:
                category = exc.category if isinstance(exc, CrawlerError) else "internal"
                logger.warning(
                    "Failed to crawl page, skipping: %s",
                    exc,
                    extra={
                        "session_id": session.id,
                        "target_url": url,
                        "crawl_depth": depth,
                        "error_category": category,
                    },
                )
            else:
                page = dict(record)
                page.update(
                    {
                        "requested_url": url,
                        "final_url": result.final_url,
                        "crawl_depth": depth,
                        "crawl_order": order,
                        "fetch_strategy": result.strategy.value,
                        "page_stats": self._extractor.page_stats(record),
                    }
                )
                if result.screenshot:
                    page["screenshot"] = result.screenshot
                session.pages.append(page)
                report(f"Scraped {len(session.pages)}/{options.max_pages} pages", url)

                if depth < options.max_depth:
                    added = 0
                    for link in extract_links(result.html_content, result.final_url):
                        if link in session.visited or link in enqueued:
                            continue
                        if is_excluded(link, options.exclude_patterns):
                            continue
                        if not is_domain_allowed(link, base_hostname, options):
                            continue
                        session.queue.append(FrontierEntry(url=link, depth=depth + 1))
                        enqueued.add(link)
                        added += 1
                    logger.debug(
                        "Found %d new links, %d in queue",
                        added,
                        len(session.queue),
                        extra={"session_id": session.id, "target_url": url, "crawl_depth": depth},
                    )

            if options.delay_ms > 0 and session.queue and len(session.pages) < options.max_pages:
                await self._sleep(options.delay_ms / 1000)

        summary = self.summarize(session.pages)
        logger.info(
            "Crawl completed",
            extra={
                "session_id": session.id,
                "target_url": session.start_url,
                "pages_crawled": len(session.pages),
                "duration_ms": round((time.monotonic() - started) * 1000, 1),
            },
        )
        return {
            "start_url": session.start_url,
            "total_pages": len(session.pages),
            "pages": list(session.pages),
            "visited_urls": list(session.visit_order),
            "summary": summary,
        }

    def summarize(self, pages: list[dict]) -> dict[str, int]:
        """Field-wise sum of every page's ``page_stats``."""
        summary = dict.fromkeys(self._extractor.page_stats({}), 0)
        for page in pages:
            for key, value in page.get("page_stats", {}).items():
                summary[key] = summary.get(key, 0) + value
        return summary
