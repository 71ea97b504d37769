"""EdgeX funding rates from the all-contracts ticker stream.

Subscribes to ``ticker.all.1s``. Each ``quote-event`` frame carries a batch
of tickers; the funding period is the gap between ``fundingTime`` and
``nextFundingTime``. The server sends ``{"type": "ping", "time": ...}`` and
expects the same time echoed back in a pong.
"""

import time
from collections.abc import Iterator
from typing import Any

from dexfunding.adapters.push import PushAdapter
from dexfunding.models import FundingDatum, build_datum, to_decimal

SUBSCRIBE_CHANNEL = "ticker.all.1s"
_QUOTE_SUFFIX = "USD"


def normalize_symbol(contract_name: Any) -> str | None:
    """``BTCUSD`` -> ``BTC``."""
    if not isinstance(contract_name, str) or not contract_name:
        return None
    upper = contract_name.strip().upper()
    if upper.endswith(_QUOTE_SUFFIX):
        upper = upper[: -len(_QUOTE_SUFFIX)]
    return upper or None


class EdgeXAdapter(PushAdapter):
    """Push adapter for EdgeX (period signalled per ticker)."""

    adapter_id = "edgex"
    label = "EdgeX"

    def connect_url(self) -> str:
        return f"{self.url}?timestamp={int(time.time() * 1000)}"

    def subscribe_message(self) -> dict[str, Any]:
        return {"type": "subscribe", "channel": SUBSCRIBE_CHANNEL}

    def pong_for(self, message: dict[str, Any]) -> dict[str, Any] | None:
        if message.get("type") != "ping":
            return None
        stamp = message.get("time")
        if isinstance(stamp, (str, int, float)) and not isinstance(stamp, bool):
            return {"type": "pong", "time": str(stamp)}
        return {"type": "pong", "time": str(int(time.time() * 1000))}

    def parse_message(self, message: dict[str, Any]) -> Iterator[FundingDatum]:
        if message.get("type") != "quote-event":
            return
        content = message.get("content")
        tickers = content.get("data") if isinstance(content, dict) else None
        if not isinstance(tickers, list):
            return

        for item in tickers:
            if not isinstance(item, dict):
                continue
            funding_time = to_decimal(item.get("fundingTime"))
            next_funding_time = to_decimal(item.get("nextFundingTime"))
            if funding_time is None or next_funding_time is None:
                continue
            datum = build_datum(
                self.label,
                normalize_symbol(item.get("contractName")),
                to_decimal(item.get("fundingRate")),
                int(next_funding_time - funding_time),
            )
            if datum is not None:
                yield datum
