"""Middleware package — error hierarchy, auth, and request ID."""

from sitecrawl.middleware.auth import ServiceKeyAuthMiddleware
from sitecrawl.middleware.error_handler import (
    AllStrategiesFailedError,
    AuthenticationError,
    AutomationProtocolError,
    CrawlerError,
    FetchTimeoutError,
    InvalidUrlError,
    NetworkError,
    ProxyExhaustedError,
    ProxyNotFoundError,
    SessionNotFoundError,
    ValidationError,
    register_error_handlers,
)
from sitecrawl.middleware.request_id import RequestIdMiddleware

__all__ = [
    "AllStrategiesFailedError",
    "AuthenticationError",
    "AutomationProtocolError",
    "CrawlerError",
    "FetchTimeoutError",
    "InvalidUrlError",
    "NetworkError",
    "ProxyExhaustedError",
    "ProxyNotFoundError",
    "RequestIdMiddleware",
    "ServiceKeyAuthMiddleware",
    "SessionNotFoundError",
    "ValidationError",
    "register_error_handlers",
]
