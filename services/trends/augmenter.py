"""Trend augmentation for completed scripts."""

import asyncio

from shared.config import config
from shared.enums import Platform
from shared.logging_utils import setup_logging
from shared.models import TrendSnapshot
from shared.utils import utcnow

from .sources import HttpTrendSource, StaticTrendSource, TrendItems, TrendSource

logger = setup_logging("trend-augmenter")


class TrendAugmenter:
    def __init__(self, source: TrendSource | None = None) -> None:
        self._source = source

    @property
    def source(self) -> TrendSource:
        """Lazy load the live feed when configured, else the static catalog."""
        if self._source is None:
            feed_url = config.get("trend_feed_url")
            if feed_url:
                self._source = HttpTrendSource(
                    feed_url, timeout=config.get_pipeline_value("trends.timeout_seconds", 10)
                )
            else:
                self._source = StaticTrendSource()
        return self._source

    @source.setter
    def source(self, source: TrendSource) -> None:
        self._source = source

    async def augment(self, platform: Platform | str) -> TrendSnapshot:
        """Fetch all three feeds concurrently; a failed feed becomes an empty list."""
        platform = Platform(platform)
        results = await asyncio.gather(
            self.source.hashtags(platform),
            self.source.audio(platform),
            self.source.viral_elements(platform),
            return_exceptions=True,
        )
        hashtags, audio, viral = (
            self._items_or_empty(name, result, platform)
            for name, result in zip(("hashtags", "audio", "viral elements"), results)
        )
        return TrendSnapshot(
            trending_hashtags=hashtags,
            trending_audio=audio,
            viral_elements=viral,
            last_updated=utcnow(),
        )

    @staticmethod
    def _items_or_empty(name: str, result: TrendItems | BaseException, platform: Platform) -> TrendItems:
        if isinstance(result, Exception):
            logger.error(f"Error fetching trending {name} for {platform.value}: {result}")
            return []
        if isinstance(result, BaseException):
            # Cancellation and interpreter exits propagate.
            raise result
        return result
