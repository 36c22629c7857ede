"""Fetch heuristics model and YAML loader.

The heuristics are the static knowledge the fetch layer relies on: which
hostnames are known to need a real browser to render, and which selectors
identify cookie-consent buttons worth clicking (tried in order, first match
wins).
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_SCRIPT_HEAVY_SITES: list[str] = [
    "bol.com",
    "amazon",
    "coolblue",
    "mediamarkt",
    "wehkamp",
    "zalando",
]

DEFAULT_COOKIE_SELECTORS: list[str] = [
    'button[id*="accept"]',
    'button[class*="accept"]',
    'button[id*="cookie"]',
    'button[class*="cookie"]',
    '[id*="cookie"] button',
    '[class*="cookie"] button',
    ".cookie-banner button",
    "#cookie-banner button",
]


class FetchHeuristics(BaseModel):
    """Hostname substrings that require full rendering, and consent selectors."""

    script_heavy_sites: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SCRIPT_HEAVY_SITES)
    )
    cookie_selectors: list[str] = Field(
        default_factory=lambda: list(DEFAULT_COOKIE_SELECTORS)
    )


def load_fetch_heuristics(yaml_path: str) -> FetchHeuristics:
    """Parse a fetch heuristics YAML file into a FetchHeuristics object.

    Args:
        yaml_path: Path to the YAML configuration file.

    Returns:
        The parsed heuristics. Sections missing from the file keep their
        built-in defaults; a missing or malformed file yields the defaults.
    """
    path = Path(yaml_path)

    if not path.exists():
        logger.warning("Fetch heuristics file not found at %s — using built-in defaults", yaml_path)
        return FetchHeuristics()

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        logger.error("Failed to parse fetch heuristics YAML at %s: %s", yaml_path, exc)
        return FetchHeuristics()

    if not isinstance(raw, dict):
        logger.warning("Fetch heuristics YAML at %s is not a mapping — using built-in defaults", yaml_path)
        return FetchHeuristics()

    try:
        heuristics = FetchHeuristics.model_validate(
            {key: value for key, value in raw.items() if value is not None}
        )
    except ValidationError as exc:
        logger.error("Invalid fetch heuristics in %s: %s — using built-in defaults", yaml_path, exc)
        return FetchHeuristics()

    heuristics.script_heavy_sites = [
        site.strip().lower() for site in heuristics.script_heavy_sites if site.strip()
    ]
    logger.info(
        "Loaded fetch heuristics: %d script-heavy sites, %d cookie selectors",
        len(heuristics.script_heavy_sites),
        len(heuristics.cookie_selectors),
    )
    return heuristics
