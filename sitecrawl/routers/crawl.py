"""Crawl session endpoints.

- POST /api/v1/crawl — start a crawl session (returns immediately)
- GET  /api/v1/crawl/{session_id}/progress — latest progress snapshot
- GET  /api/v1/crawl/{session_id}/result — final result, or running / failed status
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import APIRouter

from sitecrawl.middleware.error_handler import InvalidUrlError
from sitecrawl.models.requests import StartCrawlRequest
from sitecrawl.models.responses import ApiResponse
from sitecrawl.validators.url_validator import check_url_syntax, validate_url

logger = logging.getLogger(__name__)


async def ensure_public_target(
    url: str,
    *,
    block_private_targets: bool,
    url_validator: Callable[[str], Awaitable[bool]] = validate_url,
) -> str:
    """Reject malformed URLs and, when enabled, URLs resolving to private networks."""
    target = check_url_syntax(url)
    if block_private_targets and not await url_validator(target):
        raise InvalidUrlError(
            "URL resolves to a private network address or could not be resolved",
            url=target,
        )
    return target


def create_crawl_router(
    *,
    session_manager: Any,
    block_private_targets: bool = True,
    url_validator: Callable[[str], Awaitable[bool]] = validate_url,
) -> APIRouter:
    """Factory that creates the crawl router with injected dependencies."""
    crawl_router = APIRouter(prefix="/api/v1/crawl", tags=["crawl"])

    @crawl_router.post("", status_code=202)
    async def start_crawl(body: StartCrawlRequest) -> dict:
        """Start a crawl session. Returns 202 with the session id."""
        url = await ensure_public_target(
            body.url,
            block_private_targets=block_private_targets,
            url_validator=url_validator,
        )
        session_id = session_manager.start(url, body.options)
        return ApiResponse(
            success=True,
            data={"session_id": session_id},
        ).model_dump()

    @crawl_router.get("/{session_id}/progress")
    async def get_progress(session_id: str) -> dict:
        return ApiResponse(
            success=True,
            data=session_manager.progress(session_id),
        ).model_dump()

    @crawl_router.get("/{session_id}/result")
    async def get_result(session_id: str) -> dict:
        """Final crawl payload once completed; otherwise the session status."""
        result = session_manager.result(session_id)
        failed = result.get("status") == "failed"
        return ApiResponse(
            success=not failed,
            data=result,
            error=result.get("error") if failed else None,
        ).model_dump()

    return crawl_router
