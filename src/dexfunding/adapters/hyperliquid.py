"""Hyperliquid funding rates, polled from the aggregated funding-rates feed.

Payload shape::

    {"code": 200, "funding_rates": [
        {"market_id": 1, "exchange": "hyperliquid", "symbol": "BTC", "rate": 0.0001},
        ...
    ]}

Rows tagged with another venue are ignored. Rates are quoted per 8h unless
a row carries its own ``periodMs``.
"""

from decimal import Decimal
from typing import Any

from dexfunding.adapters.pull import PullAdapter
from dexfunding.exceptions import MalformedPayloadError
from dexfunding.models import FundingDatum, build_datum, hours_to_ms, to_decimal

PERIOD_MS = hours_to_ms(Decimal(8))
_VENUE_TAG = "hyperliquid"


def normalize_symbol(symbol: Any) -> str | None:
    if not isinstance(symbol, str):
        return None
    return symbol.strip().upper() or None


def _period_for(row: dict[str, Any]) -> int | None:
    if "periodMs" not in row or row["periodMs"] is None:
        return PERIOD_MS
    period = to_decimal(row["periodMs"])
    if period is None or period <= 0:
        return None
    return int(period)


class HyperliquidAdapter(PullAdapter):
    """Pull adapter for Hyperliquid (8h funding)."""

    adapter_id = "hyperliquid"
    label = "Hyperliquid"

    def parse_payload(self, payload: Any) -> list[FundingDatum]:
        rows = payload.get("funding_rates") if isinstance(payload, dict) else None
        if not isinstance(rows, list):
            raise MalformedPayloadError("Hyperliquid payload has no funding_rates list")

        data: list[FundingDatum] = []
        for row in rows:
            if not isinstance(row, dict):
                continue
            venue = row.get("exchange")
            if isinstance(venue, str) and venue.lower() != _VENUE_TAG:
                continue
            datum = build_datum(
                self.label,
                normalize_symbol(row.get("symbol")),
                to_decimal(row.get("rate")),
                _period_for(row),
            )
            if datum is not None:
                data.append(datum)
        return data
