"""Unit tests for CrawlerSettings and fetch heuristics loading."""

from pathlib import Path

import pytest
import yaml

from sitecrawl.config.fetch_heuristics import (
    DEFAULT_COOKIE_SELECTORS,
    DEFAULT_SCRIPT_HEAVY_SITES,
    FetchHeuristics,
    load_fetch_heuristics,
)
from sitecrawl.config.settings import CrawlerSettings


# ---------------------------------------------------------------------------
# CrawlerSettings
# ---------------------------------------------------------------------------


class TestCrawlerSettings:
    def test_loads_with_required_env_vars(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("CRAWLER_SERVICE_KEY", "secret-key")

        settings = CrawlerSettings()

        assert settings.service_key == "secret-key"

    def test_defaults_are_correct(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("CRAWLER_SERVICE_KEY", "test-key")

        settings = CrawlerSettings()

        assert settings.port == 8001
        assert settings.log_level == "INFO"
        assert settings.block_private_targets is True
        assert settings.proxy_enabled is False
        assert settings.proxy_endpoints == []
        assert settings.proxy_failure_threshold == 3
        assert settings.proxy_max_retries == 3
        assert settings.proxy_health_check_url == "https://www.google.com"
        assert settings.proxy_health_check_timeout_seconds == 10.0
        assert settings.proxy_health_check_interval_seconds == 300
        assert settings.request_timeout_seconds == 30.0
        assert settings.max_redirects == 5
        assert settings.navigation_timeout_ms == 60000
        assert settings.screenshot_navigation_timeout_ms == 180000
        assert settings.selector_timeout_ms == 5000
        assert settings.image_load_wait_ms == 2000
        assert settings.scroll_wait_ms == 1500
        assert settings.cookie_wait_ms == 1000
        assert settings.script_timeout_ms == 15000
        assert settings.scroll_passes == 3
        assert settings.session_retention_seconds == 30
        assert settings.graceful_shutdown_seconds == 30
        assert settings.fetch_heuristics_path.endswith("fetch_heuristics.yaml")

    def test_env_prefix_is_crawler(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("CRAWLER_SERVICE_KEY", "test-key")
        monkeypatch.setenv("CRAWLER_PORT", "9000")
        monkeypatch.setenv("CRAWLER_PROXY_ENABLED", "true")

        settings = CrawlerSettings()
        assert settings.port == 9000
        assert settings.proxy_enabled is True

    def test_proxy_endpoints_parsed_from_json_env(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("CRAWLER_SERVICE_KEY", "test-key")
        monkeypatch.setenv("CRAWLER_PROXY_ENDPOINTS", '["http://p1:8080", "socks5://p2:1080"]')

        settings = CrawlerSettings()
        assert settings.proxy_endpoints == ["http://p1:8080", "socks5://p2:1080"]

    def test_missing_required_field_raises(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("CRAWLER_SERVICE_KEY", raising=False)

        with pytest.raises(Exception):
            CrawlerSettings()

    def test_rejects_zero_failure_threshold(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("CRAWLER_SERVICE_KEY", "test-key")
        monkeypatch.setenv("CRAWLER_PROXY_FAILURE_THRESHOLD", "0")

        with pytest.raises(Exception):
            CrawlerSettings()

    def test_default_heuristics_file_ships_with_package(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("CRAWLER_SERVICE_KEY", "test-key")

        settings = CrawlerSettings()
        assert Path(settings.fetch_heuristics_path).is_file()


# ---------------------------------------------------------------------------
# Fetch heuristics
# ---------------------------------------------------------------------------


class TestLoadFetchHeuristics:
    def test_missing_file_returns_defaults(self, tmp_path: Path):
        heuristics = load_fetch_heuristics(str(tmp_path / "nope.yaml"))

        assert heuristics.script_heavy_sites == DEFAULT_SCRIPT_HEAVY_SITES
        assert heuristics.cookie_selectors == DEFAULT_COOKIE_SELECTORS

    def test_malformed_yaml_returns_defaults(self, tmp_path: Path):
        path = tmp_path / "bad.yaml"
        path.write_text("script_heavy_sites: [unclosed", encoding="utf-8")

        heuristics = load_fetch_heuristics(str(path))
        assert heuristics == FetchHeuristics()

    def test_non_mapping_returns_defaults(self, tmp_path: Path):
        path = tmp_path / "list.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")

        assert load_fetch_heuristics(str(path)) == FetchHeuristics()

    def test_wrong_types_return_defaults(self, tmp_path: Path):
        path = tmp_path / "types.yaml"
        path.write_text(yaml.dump({"script_heavy_sites": 42}), encoding="utf-8")

        assert load_fetch_heuristics(str(path)) == FetchHeuristics()

    def test_custom_sites_are_normalized(self, tmp_path: Path):
        path = tmp_path / "custom.yaml"
        path.write_text(
            yaml.dump({"script_heavy_sites": ["  Example.COM ", "", "shop"]}),
            encoding="utf-8",
        )

        heuristics = load_fetch_heuristics(str(path))
        assert heuristics.script_heavy_sites == ["example.com", "shop"]
        # Missing section keeps its default
        assert heuristics.cookie_selectors == DEFAULT_COOKIE_SELECTORS

    def test_cookie_selector_order_is_preserved(self, tmp_path: Path):
        selectors = ["#consent-accept", ".cookie-ok", "button.agree"]
        path = tmp_path / "cookies.yaml"
        path.write_text(yaml.dump({"cookie_selectors": selectors}), encoding="utf-8")

        assert load_fetch_heuristics(str(path)).cookie_selectors == selectors

    def test_shipped_yaml_matches_defaults(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("CRAWLER_SERVICE_KEY", "test-key")
        heuristics = load_fetch_heuristics(CrawlerSettings().fetch_heuristics_path)

        assert heuristics.script_heavy_sites == DEFAULT_SCRIPT_HEAVY_SITES
        assert heuristics.cookie_selectors == DEFAULT_COOKIE_SELECTORS
