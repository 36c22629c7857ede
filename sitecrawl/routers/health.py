"""Health, readiness, and metrics endpoints.

These endpoints do NOT require X-Service-Key authentication.
- GET /health — service status
- GET /readiness — 200 unless proxying is on and no proxy is healthy
- GET /metrics — proxy pool, session and browser counters
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Response

from sitecrawl.models.responses import ApiResponse


def create_health_router(
    *,
    proxy_manager: Any = None,
    session_manager: Any = None,
    launcher: Any = None,
) -> APIRouter:
    """Factory that creates the health router with injected dependencies."""

    health_router = APIRouter(tags=["health"])

    @health_router.get("/health")
    async def health() -> dict:
        proxy_stats = proxy_manager.get_stats() if proxy_manager else {}
        return ApiResponse(
            success=True,
            data={
                "status": "healthy",
                "proxy_pool": {
                    key: proxy_stats[key]
                    for key in ("enabled", "total", "healthy")
                    if key in proxy_stats
                },
            },
        ).model_dump()

    @health_router.get("/readiness")
    async def readiness(response: Response) -> dict:
        """Readiness probe — ready when proxying is off or at least one proxy is healthy."""
        proxying = bool(proxy_manager and proxy_manager.enabled)
        proxy_healthy = proxy_manager.get_stats()["healthy"] if proxy_manager else 0

        is_ready = not proxying or proxy_healthy > 0

        if not is_ready:
            response.status_code = 503

        return ApiResponse(
            success=is_ready,
            data={
                "ready": is_ready,
                "proxy_enabled": proxying,
                "proxy_healthy": proxy_healthy,
            },
            error=None if is_ready else "Service not ready",
        ).model_dump()

    @health_router.get("/metrics")
    async def metrics() -> dict:
        return ApiResponse(
            success=True,
            data={
                "proxy_pool": proxy_manager.get_stats() if proxy_manager else {},
                "sessions": session_manager.get_stats() if session_manager else {},
                "browser": launcher.get_stats() if launcher else {},
            },
        ).model_dump()

    return health_router
