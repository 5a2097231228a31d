"""
Async HTTP client for the JSON collaborators (trend feed, deal directory).
"""

import asyncio
from typing import Any

import aiohttp


class AsyncHTTPClient:
    """Short-lived aiohttp session for JSON GET calls."""

    def __init__(self, timeout: float = 30) -> None:
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> "AsyncHTTPClient":
        self.session = aiohttp.ClientSession(timeout=self.timeout)
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self.session:
            await self.session.close()

    @staticmethod
    async def _prepare_request(coro_or_ctx: Any) -> Any:
        """Normalize aiohttp request result to an async context manager."""
        if asyncio.iscoroutine(coro_or_ctx):
            return await coro_or_ctx
        return coro_or_ctx

    @staticmethod
    async def _ensure_response_ok(response: Any) -> None:
        """Invoke raise_for_status, awaiting when necessary."""
        result = response.raise_for_status()
        if asyncio.iscoroutine(result):
            await result

    def _require_session(self) -> aiohttp.ClientSession:
        if not self.session:
            raise RuntimeError("HTTP client not initialized. Use async context manager.")
        return self.session

    async def get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, Any] | None = None,
    ) -> Any:
        """GET a JSON document; non-2xx responses raise ClientResponseError."""
        session = self._require_session()
        request_ctx = await self._prepare_request(session.get(url, params=params, headers=headers))
        async with request_ctx as response:
            await self._ensure_response_ok(response)
            return await response.json()
