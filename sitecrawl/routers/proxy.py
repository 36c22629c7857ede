"""Proxy pool administration endpoints.

- GET  /api/v1/proxy/stats — pool and per-endpoint statistics
- POST /api/v1/proxy/health-check — probe every endpoint now
- POST /api/v1/proxy/add — add an endpoint (URL string or structured spec)
- POST /api/v1/proxy/remove — remove an endpoint by canonical URL
- POST /api/v1/proxy/reset — mark every endpoint healthy
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter

from sitecrawl.middleware.error_handler import ProxyNotFoundError, ValidationError
from sitecrawl.models.requests import AddProxyRequest, RemoveProxyRequest
from sitecrawl.models.responses import ApiResponse

logger = logging.getLogger(__name__)


def create_proxy_router(*, proxy_manager: Any) -> APIRouter:
    """Factory that creates the proxy admin router with an injected ProxyManager."""
    proxy_router = APIRouter(prefix="/api/v1/proxy", tags=["proxy"])

    @proxy_router.get("/stats")
    async def stats() -> dict:
        return ApiResponse(success=True, data=proxy_manager.get_stats()).model_dump()

    @proxy_router.post("/health-check")
    async def health_check() -> dict:
        """Probe every endpoint concurrently and return the refreshed stats."""
        stats = await proxy_manager.check_all_health()
        return ApiResponse(success=True, data=stats).model_dump()

    @proxy_router.post("/add")
    async def add(body: AddProxyRequest) -> dict:
        spec = body.proxy if isinstance(body.proxy, str) else body.proxy.model_dump()
        try:
            endpoint = proxy_manager.add_endpoint(spec)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        return ApiResponse(
            success=True,
            data={"proxy_url": endpoint.url, "stats": proxy_manager.get_stats()},
        ).model_dump()

    @proxy_router.post("/remove")
    async def remove(body: RemoveProxyRequest) -> dict:
        if not proxy_manager.remove_endpoint(body.proxy_url):
            raise ProxyNotFoundError("Proxy not found in pool", proxy_url=body.proxy_url)
        return ApiResponse(
            success=True,
            data={"removed": body.proxy_url, "stats": proxy_manager.get_stats()},
        ).model_dump()

    @proxy_router.post("/reset")
    async def reset() -> dict:
        proxy_manager.reset_all()
        return ApiResponse(success=True, data=proxy_manager.get_stats()).model_dump()

    return proxy_router
