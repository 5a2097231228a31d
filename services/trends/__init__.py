"""Trending hashtags, audio and viral elements for a platform."""

from .augmenter import TrendAugmenter
from .sources import HttpTrendSource, StaticTrendSource, TrendSource

__all__ = ["HttpTrendSource", "StaticTrendSource", "TrendAugmenter", "TrendSource"]
