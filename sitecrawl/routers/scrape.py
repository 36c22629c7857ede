"""Single-page fetch endpoint.

- POST /api/v1/scrape — fetch one URL through the strategy selector and extract it
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import APIRouter

from sitecrawl.models.requests import ScrapeRequest
from sitecrawl.models.responses import ApiResponse
from sitecrawl.routers.crawl import ensure_public_target
from sitecrawl.validators.url_validator import validate_url

logger = logging.getLogger(__name__)


def create_scrape_router(
    *,
    selector: Any,
    extractor: Any,
    block_private_targets: bool = True,
    url_validator: Callable[[str], Awaitable[bool]] = validate_url,
) -> APIRouter:
    """Factory that creates the scrape router with injected dependencies.

    Parameters
    ----------
    selector:
        FetchStrategySelector used to retrieve the page.
    extractor:
        PageExtractor that turns the markup into the response record.
    """
    scrape_router = APIRouter(prefix="/api/v1/scrape", tags=["scrape"])

    @scrape_router.post("")
    async def scrape(body: ScrapeRequest) -> dict:
        """Fetch and extract a single page. Fetch failures map to their error category."""
        url = await ensure_public_target(
            body.url,
            block_private_targets=block_private_targets,
            url_validator=url_validator,
        )
        started = time.monotonic()
        result = await selector.fetch(
            url,
            force_headless=body.force_headless,
            capture_screenshot=body.capture_screenshot,
        )
        record = extractor.extract(result.html_content, result.final_url)

        data = dict(record)
        data.update(
            {
                "final_url": result.final_url,
                "fetch_strategy": result.strategy.value,
                "page_stats": extractor.page_stats(record),
            }
        )
        if result.screenshot:
            data["screenshot"] = result.screenshot

        duration_ms = round((time.monotonic() - started) * 1000, 1)
        logger.info(
            "Scrape completed",
            extra={
                "target_url": url,
                "fetch_strategy": result.strategy.value,
                "duration_ms": duration_ms,
            },
        )
        return ApiResponse(
            success=True,
            data=data,
            meta={"duration_ms": duration_ms},
        ).model_dump()

    return scrape_router
