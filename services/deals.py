"""Lookup of brand deals that scripts can be linked to."""

from dataclasses import dataclass

import aiohttp

from shared.config import config
from shared.errors import NotFound, PipelineError
from shared.http_client import AsyncHTTPClient
from shared.logging_utils import setup_logging

logger = setup_logging("deal-directory")


@dataclass
class Deal:
    deal_id: str
    title: str
    brand_name: str


class DealDirectory:
    """Client for the deal service: ``GET <base>/deals/<id>?owner=<owner_id>``."""

    def __init__(self, base_url: str | None = None, token: str | None = None, timeout: int = 10) -> None:
        self.base_url = (base_url or config.get("deal_directory_url") or "").rstrip("/")
        self.token = token or config.get("deal_directory_token")
        self.timeout = timeout

    async def get_deal(self, deal_id: str, owner_id: int) -> Deal:
        if not self.base_url:
            raise PipelineError("Deal directory is not configured")

        headers = {"Authorization": f"Bearer {self.token}"} if self.token else None
        url = f"{self.base_url}/deals/{deal_id}"
        try:
            async with AsyncHTTPClient(timeout=self.timeout) as client:
                payload = await client.get(url, params={"owner": owner_id}, headers=headers)
        except aiohttp.ClientResponseError as exc:
            if exc.status == 404:
                raise NotFound("Deal not found", deal_id=deal_id) from exc
            logger.error(f"Deal lookup for {deal_id} failed with status {exc.status}")
            raise PipelineError(f"Deal lookup failed: {exc.message}") from exc
        except aiohttp.ClientError as exc:
            logger.error(f"Deal lookup for {deal_id} failed: {exc}")
            raise PipelineError(f"Deal lookup failed: {exc}") from exc

        brand = payload.get("brand") or {}
        return Deal(
            deal_id=str(payload.get("id") or deal_id),
            title=payload.get("title") or "Untitled Deal",
            brand_name=(brand.get("name") if isinstance(brand, dict) else str(brand)) or "",
        )
