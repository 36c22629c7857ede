"""Pydantic request models and in-memory state models for crawl sessions."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator

DEFAULT_EXCLUDE_PATTERNS: list[str] = [
    "/login",
    "/logout",
    "/register",
    "/signup",
    "/signin",
    "/cart",
    "/checkout",
    "/admin",
    "/api/",
    ".pdf",
    ".jpg",
    ".png",
    ".gif",
    ".zip",
    ".exe",
    ".mp4",
    ".mp3",
]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CrawlOptions(BaseModel):
    """Crawl policy. Immutable once a session has started."""

    model_config = {"frozen": True}

    max_pages: int = Field(default=50, ge=1, le=1000)
    max_depth: int = Field(default=3, ge=0, le=10)
    same_domain: bool = True
    include_subdomains: bool = False
    follow_external_links: bool = False
    exclude_patterns: tuple[str, ...] = Field(
        default_factory=lambda: tuple(DEFAULT_EXCLUDE_PATTERNS)
    )
    delay_ms: int = Field(default=1000, ge=0, le=60000)
    force_headless: bool = False
    capture_screenshots: bool = False

    @field_validator("exclude_patterns")
    @classmethod
    def _drop_empty_patterns(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(pattern for pattern in value if pattern)


class StartCrawlRequest(BaseModel):
    """Request model for starting a crawl session."""

    url: str = Field(..., min_length=1)
    options: CrawlOptions = Field(default_factory=CrawlOptions)


class ScrapeRequest(BaseModel):
    """Request model for a single-page fetch."""

    url: str = Field(..., min_length=1)
    force_headless: bool = False
    capture_screenshot: bool = False


class ProxySpec(BaseModel):
    """Structured proxy endpoint description."""

    host: str = Field(..., min_length=1)
    port: int = Field(..., ge=1, le=65535)
    protocol: str = Field(default="http", pattern=r"^(http|https|socks5|socks5h)$")
    username: str | None = None
    password: str | None = None


class AddProxyRequest(BaseModel):
    """Add a proxy given as a URL string or a structured spec."""

    proxy: ProxySpec | str


class RemoveProxyRequest(BaseModel):
    """Remove a proxy by its canonical connection URL."""

    proxy_url: str = Field(..., min_length=1)


class SessionStatus(str, Enum):
    """Lifecycle state of a crawl session."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class FrontierEntry:
    """A discovered URL waiting to be fetched, with its link distance from the start URL."""

    url: str
    depth: int


@dataclass
class CrawlProgress:
    """Latest progress snapshot of a crawl session."""

    current: int = 0
    total: int = 0
    message: str = ""
    current_url: str | None = None
    completed: bool = False
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "current": self.current,
            "total": self.total,
            "message": self.message,
            "current_url": self.current_url,
            "completed": self.completed,
            "error": self.error,
        }


@dataclass
class CrawlSession:
    """In-memory state for one crawl session.

    ``visited``, ``queue`` and ``pages`` are owned by the task driving the
    session; everything else is read by pollers.
    """

    id: str  # UUID
    start_url: str
    options: CrawlOptions
    status: SessionStatus = SessionStatus.RUNNING
    visited: set[str] = field(default_factory=set)
    visit_order: list[str] = field(default_factory=list)
    queue: deque[FrontierEntry] = field(default_factory=deque)
    pages: list[dict] = field(default_factory=list)
    progress: CrawlProgress = field(default_factory=CrawlProgress)
    result: dict | None = None
    error: str | None = None
    created_at: datetime = field(default_factory=_utcnow)
    completed_at: datetime | None = None

    def mark_visited(self, url: str) -> None:
        if url not in self.visited:
            self.visited.add(url)
            self.visit_order.append(url)

    @property
    def is_terminal(self) -> bool:
        return self.status is not SessionStatus.RUNNING
