"""Property tests for the readiness endpoint.

Readiness is 200 unless proxying is switched on and no endpoint is healthy.
"""

from __future__ import annotations

from unittest.mock import MagicMock

from fastapi import FastAPI
from fastapi.testclient import TestClient
from hypothesis import given, settings
from hypothesis import strategies as st

from sitecrawl.routers.health import create_health_router


def _make_app(proxy_enabled: bool, proxy_healthy: int) -> FastAPI:
    """Create a minimal FastAPI app with mocked proxy stats."""
    proxy = MagicMock()
    proxy.enabled = proxy_enabled
    proxy.get_stats.return_value = {
        "enabled": proxy_enabled,
        "total": max(proxy_healthy, 1),
        "healthy": proxy_healthy,
        "unhealthy": 0,
    }

    app = FastAPI()
    app.include_router(create_health_router(proxy_manager=proxy))
    return app


@settings(max_examples=100)
@given(
    proxy_enabled=st.booleans(),
    proxy_healthy=st.integers(min_value=0, max_value=10),
)
def test_readiness_reflects_proxy_pool(proxy_enabled: bool, proxy_healthy: int) -> None:
    client = TestClient(_make_app(proxy_enabled, proxy_healthy))

    response = client.get("/readiness")
    expected_ready = not proxy_enabled or proxy_healthy > 0

    body = response.json()
    assert response.status_code == (200 if expected_ready else 503)
    assert body["success"] is expected_ready
    assert body["data"]["ready"] is expected_ready
    assert body["data"]["proxy_healthy"] == proxy_healthy
