"""Fetch-and-crawl service: proxy-aware page fetching and breadth-first site crawls."""

__version__ = "1.0.0"
