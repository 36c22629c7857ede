"""Fetch layer — strategy selection, lightweight HTTP fetch and headless rendering."""

from sitecrawl.fetch.headless import HeadlessRenderPipeline, HeadlessTimeouts, RenderStage
from sitecrawl.fetch.lightweight import LightweightFetcher
from sitecrawl.fetch.strategy import FetchStrategySelector
from sitecrawl.fetch.types import FetchDecision, FetchResult, FetchStrategy

__all__ = [
    "FetchDecision",
    "FetchResult",
    "FetchStrategy",
    "FetchStrategySelector",
    "HeadlessRenderPipeline",
    "HeadlessTimeouts",
    "LightweightFetcher",
    "RenderStage",
]
