"""REST API endpoints returning live meter data."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request

from tariff_meter.dashboard.log_buffer import log_buffer
from tariff_meter.tariff.base import Tariff

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/status")
async def meter_status(request: Request) -> dict:
    """Last tariff and cost readings plus loop state."""
    meter = request.app.state.meter
    loop = request.app.state.meter_loop
    tariff = meter.last_tariff
    cost = meter.last_cost

    return {
        "status": "running" if loop is not None and loop.state.is_running else "idle",
        "tick_count": loop.state.tick_count if loop is not None else 0,
        "tariff": tariff.to_dict() if tariff else None,
        "cost": cost.to_dict() if cost else None,
        "devices_tracked": len(meter.cache),
    }


@router.get("/history")
async def chart_history(request: Request) -> dict:
    """Current figures and the sample history for charts."""
    return request.app.state.meter.chart_data()


@router.get("/consumers/top")
async def top_consumers(request: Request, limit: int | None = None) -> dict:
    if limit is not None and limit < 1:
        raise HTTPException(status_code=422, detail="limit must be >= 1")
    return request.app.state.meter.top_consumers(limit)


@router.get("/rate")
async def current_rate(request: Request) -> dict:
    """Current rate with a display string, e.g. "0.1200 EUR/kWh"."""
    return request.app.state.meter.current_rate_info()


@router.get("/tariff/is/{tariff}")
async def tariff_is(request: Request, tariff: Tariff) -> dict:
    """Whether ``tariff`` is the one in force right now."""
    return {"tariff": tariff.value, "active": request.app.state.meter.is_tariff(tariff)}


@router.get("/logs")
async def recent_logs(limit: int = 200, level: str | None = None) -> list[dict]:
    if limit < 1:
        raise HTTPException(status_code=422, detail="limit must be >= 1")
    return log_buffer.get_records(limit=limit, level=level)


@router.get("/config")
async def get_config(request: Request) -> dict:
    return request.app.state.config.model_dump(
        exclude={"mqtt": {"password"}, "registry": {"token"}},
    )
