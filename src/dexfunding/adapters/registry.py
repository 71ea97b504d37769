"""The set of venue adapters the monitor runs."""

from dexfunding.adapters.backpack import BackpackAdapter
from dexfunding.adapters.base import ExchangeAdapter
from dexfunding.adapters.edgex import EdgeXAdapter
from dexfunding.adapters.hyperliquid import HyperliquidAdapter
from dexfunding.adapters.lighter import LighterAdapter
from dexfunding.adapters.market_directory import MarketDirectory
from dexfunding.adapters.paradex import ParadexAdapter
from dexfunding.adapters.push import DEFAULT_RECONNECT_DELAY, Connector
from dexfunding.config import VenueSettings
from dexfunding.exchange.http_client import JsonHttpClient


def default_adapters(
    venues: VenueSettings,
    http: JsonHttpClient,
    directory: MarketDirectory | None = None,
    connector: Connector | None = None,
    reconnect_delay: float = DEFAULT_RECONNECT_DELAY,
) -> list[ExchangeAdapter]:
    """Build one adapter per supported venue.

    Pull adapters share ``http``; Lighter adapters share ``directory``
    (created from ``venues.lighter_markets_url`` when not given).
    """
    if directory is None:
        directory = MarketDirectory(http, venues.lighter_markets_url)

    push_options = {"connector": connector, "reconnect_delay": reconnect_delay}
    return [
        LighterAdapter(venues.lighter_ws_url, directory, **push_options),
        EdgeXAdapter(venues.edgex_ws_url, **push_options),
        BackpackAdapter(http, venues.backpack_url),
        ParadexAdapter(venues.paradex_ws_url, **push_options),
        HyperliquidAdapter(http, venues.hyperliquid_url),
    ]


def index_adapters(adapters: list[ExchangeAdapter]) -> dict[str, ExchangeAdapter]:
    """Map adapters by id, rejecting duplicates."""
    indexed: dict[str, ExchangeAdapter] = {}
    for adapter in adapters:
        if adapter.adapter_id in indexed:
            raise ValueError(f"Duplicate adapter id: {adapter.adapter_id}")
        indexed[adapter.adapter_id] = adapter
    return indexed
