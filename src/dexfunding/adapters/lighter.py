"""Lighter funding rates from the market-stats stream.

Subscribes to ``market_stats/all``. Stats are keyed by numeric market id,
resolved through the shared MarketDirectory; when an id is unknown the
frame's own ``symbol`` is used and recorded. Rates arrive as percentages
per 1h funding period.
"""

from collections.abc import Iterator
from decimal import Decimal
from typing import Any

from dexfunding.adapters.market_directory import MarketDirectory, normalize_symbol
from dexfunding.adapters.push import Connector, DEFAULT_RECONNECT_DELAY, PushAdapter
from dexfunding.models import MS_PER_HOUR, FundingDatum, build_datum, to_decimal

PERIOD_MS = MS_PER_HOUR
CHANNEL = "market_stats/all"
_STATS_TYPES = frozenset({"subscribed/market_stats", "update/market_stats"})
_STATS_CHANNEL = "market_stats:all"
_PERCENT = Decimal(100)


def _as_market_id(value: Any) -> int | None:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    number = to_decimal(value)
    if number is None or number != number.to_integral_value():
        return None
    return int(number)


def _market_id(key: str, entry: dict[str, Any]) -> int | None:
    market_id = _as_market_id(entry.get("market_id"))
    return market_id if market_id is not None else _as_market_id(key)


class LighterAdapter(PushAdapter):
    """Push adapter for Lighter (1h funding, id-keyed stats).

    Args:
        url: WebSocket endpoint.
        directory: Market directory shared by all Lighter adapters.
    """

    adapter_id = "lighter"
    label = "Lighter"

    def __init__(
        self,
        url: str,
        directory: MarketDirectory,
        connector: Connector | None = None,
        reconnect_delay: float = DEFAULT_RECONNECT_DELAY,
    ) -> None:
        super().__init__(url, connector=connector, reconnect_delay=reconnect_delay)
        self._directory = directory

    @property
    def directory(self) -> MarketDirectory:
        return self._directory

    def on_start(self) -> None:
        self._directory.request_load()

    def subscribe_message(self) -> dict[str, Any]:
        return {"type": "subscribe", "channel": CHANNEL}

    def pong_for(self, message: dict[str, Any]) -> dict[str, Any] | None:
        if message.get("type") == "ping":
            return {"type": "pong"}
        return None

    def parse_message(self, message: dict[str, Any]) -> Iterator[FundingDatum]:
        stats = message.get("market_stats")
        if not isinstance(stats, dict):
            return
        if message.get("type") not in _STATS_TYPES and message.get("channel") != _STATS_CHANNEL:
            return

        # Single-market updates carry the entry itself instead of an id map.
        entries = {"": stats} if "market_id" in stats else stats
        for key, entry in entries.items():
            if isinstance(entry, dict):
                datum = self._parse_entry(str(key), entry)
                if datum is not None:
                    yield datum

    def _parse_entry(self, key: str, entry: dict[str, Any]) -> FundingDatum | None:
        market_id = _market_id(key, entry)
        if market_id is None:
            return None

        symbol = self._directory.get(market_id)
        if symbol is None:
            inline = normalize_symbol(entry.get("symbol"))
            if inline is None:
                self._directory.request_load()
                return None
            symbol = self._directory.add(market_id, inline)

        percent = to_decimal(entry.get("funding_rate"))
        if percent is None:
            percent = to_decimal(entry.get("current_funding_rate"))
        if percent is None:
            return None
        return build_datum(self.label, symbol, percent / _PERCENT, PERIOD_MS)
