"""Trend data sources."""

from abc import ABC, abstractmethod
from typing import Any

from shared.enums import Platform
from shared.http_client import AsyncHTTPClient

TrendItems = list[dict[str, Any]]

_HASHTAG_CATALOG: dict[Platform, TrendItems] = {
    Platform.INSTAGRAM_REEL: [
        {"hashtag": "#trending", "trend_score": 95, "platform": "instagram", "category": "general"},
        {"hashtag": "#viral", "trend_score": 90, "platform": "instagram", "category": "general"},
        {"hashtag": "#reels", "trend_score": 85, "platform": "instagram", "category": "platform"},
    ],
    Platform.YOUTUBE_SHORTS: [
        {"hashtag": "#shorts", "trend_score": 98, "platform": "youtube", "category": "platform"},
        {"hashtag": "#trending", "trend_score": 92, "platform": "youtube", "category": "general"},
        {"hashtag": "#viral", "trend_score": 88, "platform": "youtube", "category": "general"},
    ],
}

_VIRAL_ELEMENTS: TrendItems = [
    {
        "element": "Quick Transitions",
        "description": "Fast-paced scene transitions",
        "how_to_use": "Use between scenes for engagement",
    },
    {
        "element": "Text Overlays",
        "description": "Bold text animations",
        "how_to_use": "Highlight key points visually",
    },
]


class TrendSource(ABC):
    """Provides the three independent trend feeds for a platform."""

    @abstractmethod
    async def hashtags(self, platform: Platform) -> TrendItems:
        pass

    @abstractmethod
    async def audio(self, platform: Platform) -> TrendItems:
        pass

    @abstractmethod
    async def viral_elements(self, platform: Platform) -> TrendItems:
        pass


class StaticTrendSource(TrendSource):
    """Curated catalog used when no live trend feed is configured."""

    async def hashtags(self, platform: Platform) -> TrendItems:
        catalog = _HASHTAG_CATALOG.get(platform, _HASHTAG_CATALOG[Platform.INSTAGRAM_REEL])
        return [dict(item) for item in catalog]

    async def audio(self, platform: Platform) -> TrendItems:
        return [
            {
                "title": "Trending Sound #1",
                "artist": "Popular Artist",
                "platform": platform.value,
                "usage": "Perfect for upbeat content",
            },
            {
                "title": "Viral Audio Track",
                "artist": "Trending Creator",
                "platform": platform.value,
                "usage": "Great for storytelling",
            },
        ]

    async def viral_elements(self, platform: Platform) -> TrendItems:
        return [dict(item) for item in _VIRAL_ELEMENTS]


class HttpTrendSource(TrendSource):
    """JSON trend feed: ``GET <base>/<feed>?platform=<platform>`` returning ``{"items": [...]}``."""

    def __init__(self, base_url: str, timeout: int = 10, token: str | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.token = token

    async def hashtags(self, platform: Platform) -> TrendItems:
        return await self._fetch("hashtags", platform)

    async def audio(self, platform: Platform) -> TrendItems:
        return await self._fetch("audio", platform)

    async def viral_elements(self, platform: Platform) -> TrendItems:
        return await self._fetch("viral-elements", platform)

    async def _fetch(self, feed: str, platform: Platform) -> TrendItems:
        url = f"{self.base_url}/{feed}"
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else None
        async with AsyncHTTPClient(timeout=self.timeout) as client:
            payload = await client.get(url, params={"platform": platform.value}, headers=headers)
        items = payload.get("items", []) if isinstance(payload, dict) else payload
        if not isinstance(items, list):
            raise ValueError(f"Unexpected {feed} trend payload")
        return [item for item in items if isinstance(item, dict)]
