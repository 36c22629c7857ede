"""Unit tests for mapping raw fetch failures onto error categories."""

from __future__ import annotations

import asyncio

import httpx
import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from sitecrawl.fetch.classify import classify_headless_error, classify_http_error
from sitecrawl.middleware.error_handler import (
    AutomationProtocolError,
    FetchTimeoutError,
    InvalidUrlError,
    NetworkError,
)

_REQUEST = httpx.Request("GET", "https://example.com/")


def _status_error(status: int) -> httpx.HTTPStatusError:
    response = httpx.Response(status, request=_REQUEST)
    return httpx.HTTPStatusError(f"HTTP {status}", request=_REQUEST, response=response)


class TestClassifyHttpError:
    def test_timeout(self):
        err = classify_http_error(httpx.ReadTimeout("timed out", request=_REQUEST), "https://example.com/")
        assert isinstance(err, FetchTimeoutError)
        assert err.category == "timeout"
        assert "ReadTimeout" in err.details["reason"]

    def test_asyncio_timeout(self):
        assert isinstance(classify_http_error(asyncio.TimeoutError()), FetchTimeoutError)

    def test_dns_failure(self):
        exc = httpx.ConnectError("[Errno -2] Name or service not known", request=_REQUEST)
        err = classify_http_error(exc, "https://nope.invalid/")
        assert isinstance(err, NetworkError)
        assert err.category == "dns"

    def test_ssl_failure(self):
        exc = httpx.ConnectError("[SSL: CERTIFICATE_VERIFY_FAILED] certificate verify failed", request=_REQUEST)
        assert classify_http_error(exc).category == "ssl"

    def test_connection_refused(self):
        exc = httpx.ConnectError("[Errno 111] Connection refused", request=_REQUEST)
        assert classify_http_error(exc).category == "connection"

    def test_proxy_error(self):
        exc = httpx.ProxyError("407 Proxy Authentication Required", request=_REQUEST)
        assert classify_http_error(exc).category == "proxy"

    @pytest.mark.parametrize("status", [401, 403, 429])
    def test_blocked_statuses(self, status):
        err = classify_http_error(_status_error(status))
        assert err.category == "blocked"
        assert err.details["status"] == status

    @pytest.mark.parametrize("status", [404, 500, 503])
    def test_other_statuses(self, status):
        err = classify_http_error(_status_error(status))
        assert err.category == "http"
        assert err.details["status"] == status

    def test_too_many_redirects(self):
        exc = httpx.TooManyRedirects("Exceeded maximum allowed redirects.", request=_REQUEST)
        assert classify_http_error(exc).category == "http"

    def test_crawler_errors_pass_through(self):
        original = InvalidUrlError()
        assert classify_http_error(original) is original

    def test_raw_text_only_in_details(self):
        exc = httpx.ConnectError("[Errno 111] Connection refused", request=_REQUEST)
        err = classify_http_error(exc, "https://example.com/")
        assert "Errno" not in err.message
        assert "Errno 111" in err.details["reason"]


class TestClassifyHeadlessError:
    def test_navigation_timeout(self):
        exc = PlaywrightTimeoutError("Timeout 60000ms exceeded.")
        err = classify_headless_error(exc, "https://example.com/")
        assert isinstance(err, FetchTimeoutError)

    def test_target_closed(self):
        exc = PlaywrightError("Target closed")
        err = classify_headless_error(exc)
        assert isinstance(err, AutomationProtocolError)
        assert err.message == "Browser closed unexpectedly during render"

    @pytest.mark.parametrize(
        "code,category",
        [
            ("ERR_NAME_NOT_RESOLVED", "dns"),
            ("ERR_CERT_AUTHORITY_INVALID", "ssl"),
            ("ERR_CONNECTION_REFUSED", "connection"),
            ("ERR_BLOCKED_BY_RESPONSE", "blocked"),
        ],
    )
    def test_net_error_codes(self, code, category):
        exc = PlaywrightError(f"net::{code} at https://example.com/")
        err = classify_headless_error(exc, "https://example.com/")
        assert isinstance(err, NetworkError)
        assert err.category == category
        assert err.details["code"] == code

    def test_net_timeout_code(self):
        exc = PlaywrightError("net::ERR_TIMED_OUT at https://example.com/")
        assert isinstance(classify_headless_error(exc), FetchTimeoutError)

    def test_generic_playwright_error(self):
        err = classify_headless_error(PlaywrightError("Protocol error (Page.navigate)"))
        assert isinstance(err, AutomationProtocolError)
        assert err.category == "automation"

    def test_launch_failure(self):
        err = classify_headless_error(RuntimeError("Executable doesn't exist"))
        assert isinstance(err, AutomationProtocolError)
