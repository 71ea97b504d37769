"""Venue adapters -- REST pollers and WebSocket streams normalized to FundingDatum."""

from dexfunding.adapters.backpack import BackpackAdapter
from dexfunding.adapters.base import AdapterControl, ExchangeAdapter, StartContext
from dexfunding.adapters.edgex import EdgeXAdapter
from dexfunding.adapters.hyperliquid import HyperliquidAdapter
from dexfunding.adapters.lighter import LighterAdapter
from dexfunding.adapters.market_directory import MarketDirectory
from dexfunding.adapters.paradex import ParadexAdapter
from dexfunding.adapters.pull import PullAdapter, PullControl
from dexfunding.adapters.push import PushAdapter, PushControl
from dexfunding.adapters.registry import default_adapters, index_adapters

__all__ = [
    "AdapterControl",
    "BackpackAdapter",
    "EdgeXAdapter",
    "ExchangeAdapter",
    "HyperliquidAdapter",
    "LighterAdapter",
    "MarketDirectory",
    "ParadexAdapter",
    "PullAdapter",
    "PullControl",
    "PushAdapter",
    "PushControl",
    "StartContext",
    "default_adapters",
    "index_adapters",
]
