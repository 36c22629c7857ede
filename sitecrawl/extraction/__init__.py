"""Page extraction collaborators."""

from sitecrawl.extraction.base import PageExtractor
from sitecrawl.extraction.basic import BasicPageExtractor

__all__ = ["BasicPageExtractor", "PageExtractor"]
