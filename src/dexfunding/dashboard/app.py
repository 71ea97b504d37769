"""FastAPI application factory for the JSON API, the venue proxy and the WebSocket hub."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from dexfunding.dashboard.routes import api, proxy, ws
from dexfunding.dashboard.routes.ws import BroadcastHub


def create_dashboard_app(lifespan: Any = None) -> FastAPI:
    """Create and configure the dashboard application.

    Route handlers read ``app.state.funding_hub`` (FundingHub),
    ``app.state.http`` (JsonHttpClient) and ``app.state.proxy_targets``
    (venue id -> (label, upstream url)); main.py's lifespan sets them.

    Args:
        lifespan: Optional async context manager for startup/shutdown.
    """
    app = FastAPI(
        title="DEX Funding Arbitrage Monitor",
        lifespan=lifespan,
    )

    app.state.broadcast_hub = BroadcastHub()
    app.state.proxy_targets = {}

    app.include_router(proxy.router, prefix="/api")
    app.include_router(api.router, prefix="/api")
    app.include_router(ws.router)

    return app
