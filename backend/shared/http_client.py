"""
HTTP client utilities for fetching remote JSON resources.
"""

import asyncio
from typing import Any

import aiohttp

DEFAULT_USER_AGENT = "LeadForge/1.0"


class AsyncHTTPClient:
    """Async JSON-over-HTTP client with a total request timeout."""

    def __init__(self, timeout: float = 30, headers: dict[str, str] | None = None) -> None:
        """Initialize HTTP client."""
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.default_headers: dict[str, str] = {
            "Accept": "application/json",
            "User-Agent": DEFAULT_USER_AGENT,
        }
        if headers:
            self.default_headers.update(headers)
        self.session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> "AsyncHTTPClient":
        """Enter async context manager."""
        self.session = aiohttp.ClientSession(timeout=self.timeout, headers=self.default_headers)
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager."""
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

    async def get(self, url: str, headers: dict[str, Any] | None = None) -> Any:
        """Perform GET request and decode the JSON body.

        The body is decoded regardless of the advertised content type since
        static catalog hosts frequently serve JSON as ``text/plain``.
        """
        if not self.session:
            raise RuntimeError("HTTP client not initialized. Use async context manager.")

        request_ctx = await self._prepare_request(self.session.get(url, headers=headers))
        async with request_ctx as response:
            await self._ensure_response_ok(response)
            return await response.json(content_type=None)
