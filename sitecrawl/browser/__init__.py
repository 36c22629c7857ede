"""Browser launcher and fingerprint components."""

from sitecrawl.browser.fingerprint import (
    COMMON_VIEWPORTS,
    CURATED_USER_AGENTS,
    WEBDRIVER_OVERRIDE_JS,
    FingerprintProfile,
    FingerprintRandomizer,
)
from sitecrawl.browser.launcher import CHROMIUM_ARGS, BrowserLauncher

__all__ = [
    "CHROMIUM_ARGS",
    "COMMON_VIEWPORTS",
    "CURATED_USER_AGENTS",
    "WEBDRIVER_OVERRIDE_JS",
    "BrowserLauncher",
    "FingerprintProfile",
    "FingerprintRandomizer",
]
