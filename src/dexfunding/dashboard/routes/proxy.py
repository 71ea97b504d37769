"""Uncached pass-through proxy for venue funding endpoints.

``GET /api/{venue}/funding`` forwards the upstream JSON unchanged. A non-2xx
upstream becomes a 502 and a network/parse failure a 500, both carrying
``{"code", "error"}`` bodies.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from dexfunding.exceptions import UpstreamStatusError

log = structlog.get_logger(__name__)

router = APIRouter()

_NO_STORE = {"cache-control": "no-store"}


@router.get("/{venue}/funding")
async def proxy_funding(venue: str, request: Request) -> JSONResponse:
    target = request.app.state.proxy_targets.get(venue)
    if target is None:
        return JSONResponse(
            content={"code": 404, "error": f"Unknown venue: {venue}"},
            status_code=404,
            headers=_NO_STORE,
        )
    label, url = target

    try:
        payload = await request.app.state.http.get_json(url)
    except UpstreamStatusError as e:
        log.warning("proxy_upstream_status", venue=venue, status=e.status)
        return JSONResponse(
            content={"code": e.status, "error": f"Failed to fetch {label} funding rates"},
            status_code=502,
            headers=_NO_STORE,
        )
    except Exception as e:
        log.warning("proxy_upstream_error", venue=venue, error=str(e))
        return JSONResponse(
            content={"code": 500, "error": str(e) or "Unknown error"},
            status_code=500,
            headers=_NO_STORE,
        )

    return JSONResponse(content=payload, headers=_NO_STORE)
