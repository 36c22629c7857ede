"""Public models for the crawler service."""

from sitecrawl.models.requests import (
    DEFAULT_EXCLUDE_PATTERNS,
    AddProxyRequest,
    CrawlOptions,
    CrawlProgress,
    CrawlSession,
    FrontierEntry,
    ProxySpec,
    RemoveProxyRequest,
    ScrapeRequest,
    SessionStatus,
    StartCrawlRequest,
)
from sitecrawl.models.responses import ApiResponse

__all__ = [
    "DEFAULT_EXCLUDE_PATTERNS",
    "AddProxyRequest",
    "ApiResponse",
    "CrawlOptions",
    "CrawlProgress",
    "CrawlSession",
    "FrontierEntry",
    "ProxySpec",
    "RemoveProxyRequest",
    "ScrapeRequest",
    "SessionStatus",
    "StartCrawlRequest",
]
