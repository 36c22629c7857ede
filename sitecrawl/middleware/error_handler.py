"""Global error hierarchy and FastAPI exception handlers.

All crawler-specific errors extend CrawlerError. Each error carries an HTTP
status code and a user-visible ``category`` (dns, ssl, timeout, blocked, ...)
so callers see a domain-meaningful failure class instead of raw library text.
The FastAPI exception handlers catch these errors (plus Pydantic's
RequestValidationError and unhandled exceptions) and return a consistent JSON
envelope: { success, data, error, meta }.
"""

from __future__ import annotations

import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Error hierarchy
# ---------------------------------------------------------------------------


class CrawlerError(Exception):
    """Base error for all crawler-specific errors."""

    status_code: int = 500
    message: str = "Internal server error"
    category: str = "internal"

    def __init__(
        self,
        message: str | None = None,
        *,
        category: str | None = None,
        **kwargs: object,
    ) -> None:
        self.message = message or self.__class__.message
        self.category = category or self.__class__.category
        self.details = kwargs
        super().__init__(self.message)


class ValidationError(CrawlerError):
    """Pydantic / payload validation failures — includes field-level details."""

    status_code = 422
    message = "Validation error"
    category = "validation"


class AuthenticationError(CrawlerError):
    """Invalid or missing service key."""

    status_code = 401
    message = "Invalid or missing service key"
    category = "auth"


class InvalidUrlError(CrawlerError):
    """Malformed or disallowed URL, rejected before any fetch."""

    status_code = 400
    message = "Invalid URL"
    category = "invalid_url"


class NetworkError(CrawlerError):
    """DNS, connection, TLS or HTTP-level failure while fetching a page."""

    status_code = 502
    message = "Network error while fetching page"
    category = "connection"


class FetchTimeoutError(CrawlerError):
    """Navigation, selector wait or request deadline exceeded."""

    status_code = 504
    message = "Timed out while fetching page"
    category = "timeout"


class AutomationProtocolError(CrawlerError):
    """Headless browser control-channel failure."""

    status_code = 502
    message = "Headless browser failed"
    category = "automation"


class ProxyExhaustedError(CrawlerError):
    """Proxy failover retries exceeded."""

    status_code = 503
    message = "All proxy attempts failed"
    category = "proxy"


class AllStrategiesFailedError(CrawlerError):
    """Headless render and its lightweight fallback both failed."""

    status_code = 502
    message = "All fetch strategies failed"
    category = "fetch"


class SessionNotFoundError(CrawlerError):
    """Crawl session not found (never existed or already evicted)."""

    status_code = 404
    message = "Crawl session not found"
    category = "not_found"


class ProxyNotFoundError(CrawlerError):
    """Proxy endpoint not found in the pool."""

    status_code = 404
    message = "Proxy not found"
    category = "not_found"


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------


def _envelope(
    status_code: int,
    error: str,
    meta: dict | None = None,
) -> JSONResponse:
    """Build a JSON envelope error response."""
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "data": None,
            "error": error,
            "meta": meta,
        },
    )


async def _crawler_error_handler(_request: Request, exc: CrawlerError) -> JSONResponse:
    """Handle CrawlerError subclasses."""
    meta: dict = {"category": exc.category}
    meta.update(exc.details)
    return _envelope(exc.status_code, exc.message, meta=meta)


async def _validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle FastAPI / Pydantic RequestValidationError (422)."""
    field_errors = [
        {
            "field": " -> ".join(str(loc) for loc in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]
    return _envelope(
        status_code=422,
        error="Validation error",
        meta={"category": ValidationError.category, "fields": field_errors},
    )


async def _unhandled_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions — log traceback, return generic 500."""
    logger.error(
        "Unhandled exception: %s\n%s",
        exc,
        traceback.format_exc(),
    )
    return _envelope(status_code=500, error="Internal server error")


# ---------------------------------------------------------------------------
# Registration helper
# ---------------------------------------------------------------------------


def register_error_handlers(app: FastAPI) -> None:
    """Wire up all exception handlers on the FastAPI application."""
    app.add_exception_handler(CrawlerError, _crawler_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _unhandled_error_handler)  # type: ignore[arg-type]
