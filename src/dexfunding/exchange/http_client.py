"""JSON-over-HTTPS client shared by pull adapters, the market directory and the proxy.

Wraps one lazily created aiohttp.ClientSession. Every request bypasses
caches and maps failures onto the exceptions in ``dexfunding.exceptions``.
"""

import asyncio
from typing import Any

import aiohttp

from dexfunding.exceptions import FetchError, MalformedPayloadError, UpstreamStatusError
from dexfunding.logging import get_logger

logger = get_logger(__name__)

_REQUEST_HEADERS = {
    "accept": "application/json",
    "cache-control": "no-store",
}


class JsonHttpClient:
    """Thin aiohttp wrapper returning decoded JSON bodies.

    Args:
        timeout: Total per-request timeout in seconds.
    """

    def __init__(self, timeout: float = 10.0) -> None:
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def get_json(self, url: str) -> Any:
        """GET ``url`` and return the decoded JSON body.

        Raises:
            UpstreamStatusError: The upstream answered with a non-2xx status.
            MalformedPayloadError: The body is not valid JSON.
            FetchError: The request failed before a response arrived.
        """
        session = self._ensure_session()
        try:
            async with session.get(url, headers=_REQUEST_HEADERS) as resp:
                if not 200 <= resp.status < 300:
                    raise UpstreamStatusError(resp.status, url)
                try:
                    return await resp.json(content_type=None)
                except ValueError as e:
                    raise MalformedPayloadError(f"Invalid JSON from {url}") from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise FetchError(f"Request to {url} failed: {e!r}") from e

    async def close(self) -> None:
        """Release the underlying session. Safe to call more than once."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
            logger.debug("http_session_closed")
        self._session = None
