"""X-Service-Key authentication middleware.

Validates the X-Service-Key header against the configured service key from
CrawlerSettings. Operational probes (/health, /readiness, /metrics) are
reachable without a key; every /api/v1 route (crawl sessions, single-page
scrapes, proxy administration) requires one.

Uses ``hmac.compare_digest`` for constant-time comparison.
"""

from __future__ import annotations

import hmac
import logging
from collections.abc import Iterable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from sitecrawl.middleware.error_handler import AuthenticationError, _envelope

logger = logging.getLogger(__name__)

DEFAULT_PUBLIC_PATHS: frozenset[str] = frozenset({"/health", "/readiness", "/metrics"})


class ServiceKeyAuthMiddleware(BaseHTTPMiddleware):
    """Starlette middleware that enforces X-Service-Key authentication."""

    def __init__(
        self,
        app,  # noqa: ANN001
        service_key: str,
        public_paths: Iterable[str] | None = None,
    ) -> None:
        super().__init__(app)
        self._service_key = service_key
        self._public_paths = (
            frozenset(public_paths) if public_paths is not None else DEFAULT_PUBLIC_PATHS
        )

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self._public_paths:
            return await call_next(request)

        provided_key = request.headers.get("x-service-key")
        reason: str | None = None
        if not provided_key:
            reason = "missing_service_key"
        elif not hmac.compare_digest(provided_key, self._service_key):
            reason = "invalid_service_key"

        if reason is not None:
            logger.warning(
                "Rejected request to %s: %s",
                request.url.path,
                reason,
                extra={
                    "event": "auth_failure",
                    "reason": reason,
                    "source_ip": request.client.host if request.client else "unknown",
                    "path": request.url.path,
                },
            )
            return _envelope(
                status_code=AuthenticationError.status_code,
                error=AuthenticationError.message,
                meta={"category": AuthenticationError.category},
            )

        return await call_next(request)
