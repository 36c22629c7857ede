"""Structured JSON logging configuration.

Configures Python logging to emit JSON-formatted log entries with required
fields: request_id, level, timestamp. Crawl-specific fields are copied from
the ``extra`` dict when present (session_id, target_url, proxy_used,
error_reason, fetch_strategy, crawl_depth, duration_ms, pages_crawled).

SECURITY: service keys, tokens and proxy passwords never reach the output.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone

from sitecrawl.middleware.request_id import request_id_var

# Patterns that should be redacted from log output
_SENSITIVE_PATTERNS = re.compile(
    r"(service.key|api.key|secret|password|token|credential|authorization)"
    r"[\s]*[=:]\s*\S+",
    re.IGNORECASE,
)

# user:password@ segment of a proxy URL
_URL_CREDENTIALS = re.compile(r"(?P<scheme>[a-z][a-z0-9+.-]*://)[^/@\s:]+:[^/@\s]+@", re.IGNORECASE)

_CONTEXT_FIELDS: tuple[str, ...] = (
    "session_id",
    "target_url",
    "final_url",
    "proxy_used",
    "fetch_strategy",
    "crawl_depth",
    "duration_ms",
    "pages_crawled",
    "error_category",
)


class RequestIdFilter(logging.Filter):
    """Attach the request ID bound by ``RequestIdMiddleware`` to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = request_id_var.get()
        return True


class JsonFormatter(logging.Formatter):
    """Formats log records as JSON with structured fields."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": sanitize(record.getMessage()),
            "request_id": getattr(record, "request_id", None),
        }

        for name in _CONTEXT_FIELDS:
            if hasattr(record, name):
                value = getattr(record, name)
                entry[name] = sanitize(value) if isinstance(value, str) else value

        if hasattr(record, "error_reason"):
            entry["error_reason"] = sanitize(str(getattr(record, "error_reason")))

        if record.exc_info and record.exc_info[1]:
            entry["exception"] = sanitize(self.formatException(record.exc_info))

        return json.dumps(entry, default=str)


def sanitize(text: str) -> str:
    """Remove credential-like values and proxy passwords from *text*."""
    text = _URL_CREDENTIALS.sub(r"\g<scheme>[REDACTED]@", text)
    return _SENSITIVE_PATTERNS.sub("[REDACTED]", text)


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger with JSON formatting.

    Parameters
    ----------
    level:
        Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Remove existing handlers to avoid duplicates
    root.handlers.clear()

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    handler.addFilter(RequestIdFilter())
    root.addHandler(handler)
