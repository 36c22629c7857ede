"""Fetch result and strategy types shared by the fetchers and the selector."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class FetchStrategy(str, Enum):
    """How a page was (or will be) retrieved."""

    LIGHTWEIGHT = "lightweight"
    HEADLESS = "headless"


@dataclass(frozen=True)
class FetchDecision:
    """Outcome of the strategy selector for one URL."""

    use_headless: bool

    @property
    def strategy(self) -> FetchStrategy:
        return FetchStrategy.HEADLESS if self.use_headless else FetchStrategy.LIGHTWEIGHT


@dataclass
class FetchResult:
    """A retrieved page: final markup, post-redirect URL and optional screenshot.

    ``screenshot`` is a ``data:image/png;base64,...`` URI when captured.
    """

    html_content: str
    final_url: str
    strategy: FetchStrategy
    screenshot: str | None = None
