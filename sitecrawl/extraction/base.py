"""Abstract base for page extractors.

An extractor turns fetched markup into a structured page record. The crawl
core never interprets the record's fields; it only attaches the record to the
page result and sums the per-page counts from :meth:`PageExtractor.page_stats`
into the crawl summary.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class PageExtractor(ABC):
    """Base extractor that all page extractors extend."""

    @abstractmethod
    def extract(self, html: str, final_url: str) -> dict:
        """Extract a structured record from *html*.

        Parameters
        ----------
        html:
            Serialized page markup.
        final_url:
            Post-redirect URL of the page; relative URLs resolve against it.

        Returns
        -------
        dict
            A JSON-serializable mapping of field names to values.
        """
        ...

    @abstractmethod
    def page_stats(self, record: dict) -> dict[str, int]:
        """Return the numeric per-page statistics summed into the crawl summary."""
        ...
