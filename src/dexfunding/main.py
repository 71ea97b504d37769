"""Entry point for the DEX funding-rate arbitrage monitor.

Wires all components together and serves the JSON API, the venue proxy
and the WebSocket feed. The FundingHub and the HTTP server share a single
asyncio event loop via uvicorn's programmatic API and FastAPI's lifespan
context manager.

uvicorn handles SIGINT/SIGTERM; the lifespan then stops the hub.

Component wiring order (in _build_components):
1. AppSettings (configuration)
2. Logging setup
3. JsonHttpClient (shared by pull adapters, the market directory and the proxy)
4. MarketDirectory (Lighter market id -> symbol)
5. Venue adapters
6. FundingAggregator (snapshots + ranking policy)
7. FundingHub (adapter lifecycle and event channel)
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI

from dexfunding.adapters.market_directory import MarketDirectory
from dexfunding.adapters.registry import default_adapters
from dexfunding.aggregation.aggregator import FundingAggregator
from dexfunding.aggregation.ranker import RankingPolicy
from dexfunding.config import AppSettings
from dexfunding.exchange.http_client import JsonHttpClient
from dexfunding.hub import FundingHub
from dexfunding.logging import get_logger, setup_logging


def _build_components(settings: AppSettings) -> dict[str, Any]:
    """Build all monitor components from settings.

    Note: Does NOT start anything -- the hub is started in the lifespan.

    Args:
        settings: Application-wide settings.

    Returns:
        Dict mapping component names to instances.
    """
    # 3. Shared HTTP client
    http = JsonHttpClient(timeout=settings.feed.http_timeout)

    # 4. Shared Lighter market directory
    directory = MarketDirectory(http, settings.venues.lighter_markets_url)

    # 5. Venue adapters
    adapters = default_adapters(
        settings.venues,
        http,
        directory=directory,
        reconnect_delay=settings.feed.reconnect_delay,
    )

    # 6. Aggregator with the configured ranking policy
    aggregator = FundingAggregator(RankingPolicy(settings.feed.ranking_policy))

    # 7. Hub
    funding_hub = FundingHub(
        adapters,
        aggregator=aggregator,
        interval_sec=settings.feed.refresh_interval_sec,
        min_enabled=settings.feed.min_enabled_adapters,
        enabled_ids=settings.feed.enabled_adapters or None,
    )

    return {
        "http": http,
        "directory": directory,
        "adapters": adapters,
        "aggregator": aggregator,
        "funding_hub": funding_hub,
    }


def _proxy_targets(settings: AppSettings) -> dict[str, tuple[str, str]]:
    """Venue id -> (display label, upstream URL) for the funding proxy."""
    return {
        "backpack": ("Backpack", settings.venues.backpack_url),
        "hyperliquid": ("Hyperliquid", settings.venues.hyperliquid_url),
        "lighter": ("Lighter", settings.venues.lighter_rest_url),
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage component lifecycle within the FastAPI application.

    On startup: stores components on app.state, starts the hub and the
    WebSocket update loop.

    On shutdown: cancels the update loop, stops the hub, closes HTTP.
    """
    from dexfunding.dashboard.update_loop import dashboard_update_loop

    logger = get_logger("dexfunding.main")
    settings = app.state.settings
    components = app.state.components

    # Store components on app.state for route handler access
    app.state.funding_hub = components["funding_hub"]
    app.state.http = components["http"]
    app.state.proxy_targets = _proxy_targets(settings)

    await components["funding_hub"].start()

    update_task = asyncio.create_task(dashboard_update_loop(app))

    logger.info(
        "lifespan_started",
        enabled=components["funding_hub"].enabled_ids,
        policy=settings.feed.ranking_policy,
    )

    yield

    update_task.cancel()
    try:
        await update_task
    except asyncio.CancelledError:
        pass

    await components["funding_hub"].stop()
    await components["http"].close()

    logger.info("dex_funding_monitor_stopped")


async def run() -> None:
    """Run the monitor behind the HTTP/WebSocket service."""
    # 1. Load settings
    settings = AppSettings()

    # 2. Setup logging
    setup_logging(settings.log_level)
    logger = get_logger("dexfunding.main")

    # 3-7. Build all components
    components = _build_components(settings)

    from dexfunding.dashboard.app import create_dashboard_app

    app = create_dashboard_app(lifespan=lifespan)
    app.state.settings = settings
    app.state.components = components

    logger.info(
        "starting_dex_funding_monitor",
        host=settings.dashboard.host,
        port=settings.dashboard.port,
        adapters=[a.adapter_id for a in components["adapters"]],
    )

    config = uvicorn.Config(
        app,
        host=settings.dashboard.host,
        port=settings.dashboard.port,
        log_level="warning",  # Suppress uvicorn access logs
    )
    server = uvicorn.Server(config)
    await server.serve()


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
