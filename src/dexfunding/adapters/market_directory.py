"""Shared Lighter market-id -> symbol directory.

Lighter's market stats are keyed by numeric market id, so the adapter needs
a reference table from ``orderBookDetails``. One directory instance is
shared by every Lighter adapter the registry builds:

- populated once, lazily, by a single in-flight load that concurrent
  callers share; a failed load is retried on the next request;
- append-only: ``add`` never replaces an existing id, and the REST load
  never overwrites ids learned inline from the stream.

All access happens on the event loop thread, so no lock is taken.
"""

import asyncio
from typing import Any

from dexfunding.exceptions import MalformedPayloadError
from dexfunding.exchange.http_client import JsonHttpClient
from dexfunding.logging import get_logger

logger = get_logger(__name__)


def normalize_symbol(symbol: Any) -> str | None:
    if not isinstance(symbol, str):
        return None
    return symbol.strip().upper() or None


class MarketDirectory:
    """Append-only cache of Lighter market ids.

    Args:
        http: JSON client used for the one-time load.
        url: ``orderBookDetails`` endpoint.
    """

    def __init__(self, http: JsonHttpClient, url: str) -> None:
        self._http = http
        self._url = url
        self._symbols: dict[int, str] = {}
        self._loaded = False
        self._pending: asyncio.Task | None = None  # type: ignore[type-arg]

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def loading(self) -> bool:
        return self._pending is not None

    def __len__(self) -> int:
        return len(self._symbols)

    def get(self, market_id: int) -> str | None:
        return self._symbols.get(market_id)

    def add(self, market_id: int, symbol: str) -> str:
        """Record ``symbol`` for ``market_id`` unless the id is already known.

        Returns the symbol now stored for the id.
        """
        return self._symbols.setdefault(market_id, symbol)

    def request_load(self) -> None:
        """Start a background load unless one is running or already succeeded."""
        if self._loaded:
            return
        self._ensure_pending()

    async def load(self) -> dict[int, str]:
        """Load the directory (sharing any in-flight load) and return a copy.

        Raises whatever the underlying fetch raised when the load fails.
        """
        if not self._loaded:
            await asyncio.shield(self._ensure_pending())
        return dict(self._symbols)

    def _ensure_pending(self) -> asyncio.Task:  # type: ignore[type-arg]
        if self._pending is None:
            self._pending = asyncio.get_running_loop().create_task(self._fetch())
            self._pending.add_done_callback(self._on_load_done)
        return self._pending

    def _on_load_done(self, task: asyncio.Task) -> None:  # type: ignore[type-arg]
        self._pending = None
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning("market_directory_load_failed", error=str(error))

    async def _fetch(self) -> None:
        payload = await self._http.get_json(self._url)
        entries = (
            payload.get("order_book_details") if isinstance(payload, dict) else None
        )
        if not isinstance(entries, list):
            raise MalformedPayloadError("orderBookDetails payload has no order_book_details list")

        added = 0
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            market_id = entry.get("market_id")
            symbol = normalize_symbol(entry.get("symbol"))
            if not isinstance(market_id, int) or isinstance(market_id, bool) or not symbol:
                continue
            if market_id not in self._symbols:
                self._symbols[market_id] = symbol
                added += 1

        self._loaded = True
        logger.info("market_directory_loaded", markets=len(self._symbols), added=added)
