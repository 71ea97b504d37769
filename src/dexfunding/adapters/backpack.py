"""Backpack perpetual funding rates, polled from the public markPrices endpoint.

The endpoint returns a JSON array of ``{"symbol": "BTC_USDC_PERP",
"fundingRate": "0.0000125", ...}``. Backpack settles funding hourly.
"""

from typing import Any

from dexfunding.adapters.pull import PullAdapter
from dexfunding.exceptions import MalformedPayloadError
from dexfunding.models import MS_PER_HOUR, FundingDatum, build_datum, to_decimal

PERIOD_MS = MS_PER_HOUR
_PERP_SUFFIX = "_PERP"
_QUOTE_SUFFIXES = ("_USDC", "_USDT", "_USD")


def normalize_symbol(market: Any) -> str | None:
    """``BTC_USDC_PERP`` -> ``BTC``. Spot markets (no ``_PERP``) -> None."""
    if not isinstance(market, str) or not market:
        return None
    upper = market.strip().upper()
    if not upper.endswith(_PERP_SUFFIX):
        return None
    base = upper[: -len(_PERP_SUFFIX)]
    for suffix in _QUOTE_SUFFIXES:
        if base.endswith(suffix):
            base = base[: -len(suffix)]
            break
    return base or None


class BackpackAdapter(PullAdapter):
    """Pull adapter for Backpack (1h funding)."""

    adapter_id = "backpack"
    label = "Backpack"

    def parse_payload(self, payload: Any) -> list[FundingDatum]:
        if not isinstance(payload, list):
            raise MalformedPayloadError(
                f"Expected a list from Backpack, got {type(payload).__name__}"
            )

        data: list[FundingDatum] = []
        for item in payload:
            if not isinstance(item, dict):
                continue
            datum = build_datum(
                self.label,
                normalize_symbol(item.get("symbol")),
                to_decimal(item.get("fundingRate")),
                PERIOD_MS,
            )
            if datum is not None:
                data.append(datum)
        return data
