"""Realistic browser fingerprint profiles for headless renders.

Each headless fetch gets a profile (user agent, viewport, locale and the
navigation header set) that is applied at browser-context level, plus an
init script that hides the usual automation tells before any page script
runs.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field


# ---------------------------------------------------------------------------
# Curated user agent list — real Chrome UA strings (desktop, recent versions)
# ---------------------------------------------------------------------------

CURATED_USER_AGENTS: list[str] = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/118.0.0.0 Safari/537.36",
]

# Common desktop resolutions (width, height)
COMMON_VIEWPORTS: list[tuple[int, int]] = [
    (1920, 1080),
    (1680, 1050),
    (1536, 864),
    (1440, 900),
    (1366, 768),
]


# ---------------------------------------------------------------------------
# JavaScript overrides to mask automation detection
# ---------------------------------------------------------------------------

WEBDRIVER_OVERRIDE_JS = """
(() => {
    Object.defineProperty(navigator, 'webdriver', {
        get: () => undefined,
        configurable: true,
    });

    if (!window.chrome) {
        window.chrome = {};
    }
    if (!window.chrome.runtime) {
        window.chrome.runtime = {};
    }

    const originalQuery = window.navigator.permissions && window.navigator.permissions.query;
    if (originalQuery) {
        window.navigator.permissions.query = (parameters) => (
            parameters.name === 'notifications'
                ? Promise.resolve({ state: Notification.permission })
                : originalQuery(parameters)
        );
    }
})();
"""


@dataclass
class FingerprintProfile:
    """A browser fingerprint applied to one headless context."""

    user_agent: str
    viewport_width: int
    viewport_height: int
    locale: str
    extra_headers: dict[str, str] = field(default_factory=dict)

    def context_options(self) -> dict:
        """Keyword arguments for ``Browser.new_context``."""
        return {
            "user_agent": self.user_agent,
            "viewport": {"width": self.viewport_width, "height": self.viewport_height},
            "locale": self.locale,
            "extra_http_headers": dict(self.extra_headers),
        }


class FingerprintRandomizer:
    """Builds fingerprint profiles.

    With ``user_agent`` set every profile uses it; otherwise one is drawn from
    :data:`CURATED_USER_AGENTS`. The viewport is drawn from
    :data:`COMMON_VIEWPORTS`.
    """

    def __init__(
        self,
        *,
        user_agent: str | None = None,
        accept_language: str = "nl-NL,nl;q=0.9,en-US;q=0.8,en;q=0.7",
        rng: random.Random | None = None,
    ) -> None:
        self._user_agent = user_agent
        self._accept_language = accept_language
        self._rng = rng or random.Random()

    def generate(self) -> FingerprintProfile:
        user_agent = self._user_agent or self._rng.choice(CURATED_USER_AGENTS)
        width, height = self._rng.choice(COMMON_VIEWPORTS)
        locale = self._accept_language.split(",", 1)[0].split(";", 1)[0].strip() or "en-US"
        return FingerprintProfile(
            user_agent=user_agent,
            viewport_width=width,
            viewport_height=height,
            locale=locale,
            extra_headers={
                "Accept-Language": self._accept_language,
                "Upgrade-Insecure-Requests": "1",
            },
        )
