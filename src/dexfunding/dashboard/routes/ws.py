"""WebSocket hub pushing the ranked view to connected clients."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

log = structlog.get_logger(__name__)

router = APIRouter()


class BroadcastHub:
    """Tracks WebSocket clients and fans JSON payloads out to all of them."""

    def __init__(self) -> None:
        self.connections: list[WebSocket] = []

    async def connect(self, ws: WebSocket) -> None:
        await ws.accept()
        self.connections.append(ws)
        log.info("dashboard_ws_connected", total=len(self.connections))

    def disconnect(self, ws: WebSocket) -> None:
        if ws in self.connections:
            self.connections.remove(ws)
        log.info("dashboard_ws_disconnected", total=len(self.connections))

    async def broadcast(self, payload: dict) -> None:
        """Send ``payload`` to every client, dropping broken connections."""
        for ws in self.connections.copy():
            try:
                await ws.send_json(payload)
            except Exception:
                if ws in self.connections:
                    self.connections.remove(ws)
                log.warning("dashboard_ws_broadcast_error", remaining=len(self.connections))


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    """Clients receive one snapshot on connect, then one per view change."""
    from dexfunding.dashboard.update_loop import build_snapshot

    hub: BroadcastHub = websocket.app.state.broadcast_hub
    await hub.connect(websocket)
    try:
        await websocket.send_json(build_snapshot(websocket.app.state.funding_hub))
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        hub.disconnect(websocket)
