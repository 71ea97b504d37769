"""ParaDex funding rates over JSON-RPC WebSocket.

Subscribes to ``funding_data.ALL``; every ``subscription`` notification
carries one market. A row either states its own rate and period
(``funding_rate`` + ``funding_period_hours``) or only the legacy 8h rate
(``funding_rate_8h``). Server pings are JSON-RPC requests answered with a
``"pong"`` result under the same id.
"""

from collections.abc import Iterator
from decimal import Decimal
from typing import Any

from dexfunding.adapters.push import PushAdapter
from dexfunding.models import FundingDatum, build_datum, hours_to_ms, to_decimal

CHANNEL = "funding_data.ALL"
_LEGACY_PERIOD_HOURS = Decimal(8)
_QUOTE_SUFFIXES = ("USDT", "USDC", "USD")


def normalize_symbol(market: Any) -> str | None:
    """``BTC-USD-PERP`` -> ``BTC``. Non-perpetual markets -> None."""
    if not isinstance(market, str) or not market:
        return None
    upper = market.strip().upper()
    if not upper.endswith("PERP"):
        return None

    parts = [part for part in upper[: -len("PERP")].split("-") if part]
    if not parts:
        return None

    symbol = parts[0]
    for suffix in _QUOTE_SUFFIXES:
        if symbol.endswith(suffix):
            symbol = symbol[: -len(suffix)]
            break
    return symbol or None


def _rate_and_period(data: dict[str, Any]) -> tuple[Decimal | None, int | None]:
    rate = to_decimal(data.get("funding_rate"))
    hours = to_decimal(data.get("funding_period_hours"))
    if rate is not None and hours is not None:
        return rate, hours_to_ms(hours) if hours > 0 else None

    rate_8h = to_decimal(data.get("funding_rate_8h"))
    if rate_8h is not None:
        return rate_8h, hours_to_ms(_LEGACY_PERIOD_HOURS)
    return None, None


class ParadexAdapter(PushAdapter):
    """Push adapter for ParaDex (variable period)."""

    adapter_id = "paradex"
    label = "ParaDex"

    def subscribe_message(self) -> dict[str, Any]:
        return {
            "jsonrpc": "2.0",
            "method": "subscribe",
            "params": {"channel": CHANNEL},
            "id": 1,
        }

    def pong_for(self, message: dict[str, Any]) -> dict[str, Any] | None:
        if message.get("method") != "ping":
            return None
        return {"jsonrpc": "2.0", "id": message.get("id"), "result": "pong"}

    def parse_message(self, message: dict[str, Any]) -> Iterator[FundingDatum]:
        if message.get("method") != "subscription":
            return
        params = message.get("params")
        if not isinstance(params, dict) or params.get("channel") != CHANNEL:
            return
        data = params.get("data")
        if not isinstance(data, dict):
            return

        rate, period_ms = _rate_and_period(data)
        datum = build_datum(
            self.label, normalize_symbol(data.get("market")), rate, period_ms
        )
        if datum is not None:
            yield datum
