"""WebSocket update loop for real-time dashboard refresh.

Waits for the FundingHub's view version to move and broadcasts one JSON
snapshot (ranked rows plus adapter statuses) to every connected client.
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog
from fastapi import FastAPI

from dexfunding.dashboard.routes.api import row_to_dict
from dexfunding.hub import FundingHub

log = structlog.get_logger(__name__)


def build_snapshot(funding_hub: FundingHub) -> dict[str, Any]:
    """Serialize the current view for WebSocket clients."""
    return {
        "type": "snapshot",
        "version": funding_hub.version,
        "last_update": funding_hub.last_update,
        "rows": [row_to_dict(row) for row in funding_hub.get_rows()],
        "adapters": funding_hub.describe_adapters(),
    }


async def dashboard_update_loop(app: FastAPI) -> None:
    """Broadcast a snapshot after every change to the hub's view.

    Runs until cancelled. Changes that land while a broadcast is in
    progress are coalesced into the next snapshot.

    Args:
        app: The FastAPI application with ``funding_hub`` and
             ``broadcast_hub`` on its state.
    """
    funding_hub: FundingHub = app.state.funding_hub
    version = funding_hub.version

    log.info("dashboard_update_loop_started")

    while True:
        try:
            version = await funding_hub.wait_for_update(version)

            hub = app.state.broadcast_hub
            if not hub.connections:
                continue

            await hub.broadcast(build_snapshot(funding_hub))

        except asyncio.CancelledError:
            log.info("dashboard_update_loop_cancelled")
            break
        except Exception:
            log.warning("dashboard_update_loop_error", exc_info=True)
            await asyncio.sleep(1)
