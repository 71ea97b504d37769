"""JSON API over the FundingHub: ranked rows, merged data, adapter control."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from dexfunding.exceptions import UnknownAdapterError
from dexfunding.hub import FundingHub
from dexfunding.models import ArbitrageRow, FundingDatum, format_period

log = structlog.get_logger(__name__)

router = APIRouter()

_TRADE_URLS = {
    "EdgeX": "https://pro.edgex.exchange/trade/{symbol}USD",
    "Lighter": "https://app.lighter.xyz/trade/{symbol}",
    "Backpack": "https://backpack.exchange/trade/{symbol}_USD_PERP",
    "ParaDex": "https://app.paradex.trade/trade/{symbol}-USD-PERP",
    "Hyperliquid": "https://app.hyperliquid.xyz/trade/{symbol}",
}


class IntervalUpdate(BaseModel):
    """Body of PUT /api/interval."""

    interval_sec: int = Field(ge=0)


def exchange_trade_url(exchange: str, symbol: str) -> str | None:
    """Trade page for ``symbol`` on ``exchange``, when the venue is known."""
    template = _TRADE_URLS.get(exchange)
    return template.format(symbol=symbol) if template else None


def row_to_dict(row: ArbitrageRow) -> dict[str, Any]:
    return {
        "symbol": row.symbol,
        "long_exchange": row.long_exchange,
        "long_rate_per_hour": str(row.long_rate_per_hour),
        "long_period": row.long_period,
        "long_url": exchange_trade_url(row.long_exchange, row.symbol),
        "short_exchange": row.short_exchange,
        "short_rate_per_hour": str(row.short_rate_per_hour),
        "short_period": row.short_period,
        "short_url": exchange_trade_url(row.short_exchange, row.symbol),
        "diff_per_hour": str(row.diff_per_hour),
    }


def datum_to_dict(datum: FundingDatum) -> dict[str, Any]:
    return {
        "exchange": datum.exchange,
        "symbol": datum.symbol,
        "raw_rate": str(datum.raw_rate),
        "period_ms": datum.period_ms,
        "period": format_period(datum.period_ms),
        "rate_per_hour": str(datum.rate_per_hour),
    }


def _hub(request: Request) -> FundingHub:
    return request.app.state.funding_hub


@router.get("/opportunities")
async def get_opportunities(request: Request) -> JSONResponse:
    """Ranked long/short pairings, widest hourly spread first."""
    rows = _hub(request).get_rows()
    return JSONResponse(content=[row_to_dict(row) for row in rows])


@router.get("/funding-rates")
async def get_funding_rates(request: Request) -> JSONResponse:
    """Every normalized datum currently held, across enabled adapters."""
    data = _hub(request).get_funding_data()
    return JSONResponse(content=[datum_to_dict(datum) for datum in data])


@router.get("/adapters")
async def get_adapters(request: Request) -> JSONResponse:
    return JSONResponse(content=_hub(request).describe_adapters())


@router.post("/adapters/{adapter_id}/enable")
async def enable_adapter(adapter_id: str, request: Request) -> JSONResponse:
    hub = _hub(request)
    try:
        accepted = hub.enable(adapter_id)
    except UnknownAdapterError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return JSONResponse(content={"accepted": accepted, "enabled": hub.enabled_ids})


@router.post("/adapters/{adapter_id}/disable")
async def disable_adapter(adapter_id: str, request: Request) -> JSONResponse:
    """Disable an adapter; ``accepted`` is false when the floor forbids it."""
    hub = _hub(request)
    try:
        accepted = hub.disable(adapter_id)
    except UnknownAdapterError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return JSONResponse(content={"accepted": accepted, "enabled": hub.enabled_ids})


@router.put("/interval")
async def update_interval(body: IntervalUpdate, request: Request) -> JSONResponse:
    hub = _hub(request)
    hub.set_interval_sec(body.interval_sec)
    return JSONResponse(content={"interval_sec": hub.interval_sec})


@router.post("/refresh")
async def refresh_all(request: Request) -> JSONResponse:
    """Refresh every pull adapter now; responds once all attempts settled."""
    hub = _hub(request)
    await hub.refresh_all()
    log.info("refresh_all_via_api")
    return JSONResponse(content=hub.get_status())


@router.get("/status")
async def get_status(request: Request) -> JSONResponse:
    return JSONResponse(content=_hub(request).get_status())
