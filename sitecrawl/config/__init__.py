"""Configuration module — settings and fetch heuristics."""

from sitecrawl.config.fetch_heuristics import FetchHeuristics, load_fetch_heuristics
from sitecrawl.config.settings import CrawlerSettings

__all__ = [
    "CrawlerSettings",
    "FetchHeuristics",
    "load_fetch_heuristics",
]
