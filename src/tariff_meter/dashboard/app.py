"""FastAPI application factory for the meter's JSON API."""

from __future__ import annotations

from fastapi import FastAPI, Request

from tariff_meter import __version__
from tariff_meter.config.manager import ConfigManager
from tariff_meter.config.schema import AppConfig
from tariff_meter.engine import TariffMeter


def create_app(
    config: AppConfig,
    meter: TariffMeter,
    config_manager: ConfigManager | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Tariff Meter",
        description="Day/night tariff tracking and live electricity cost",
        version=__version__,
    )

    @app.middleware("http")
    async def disable_browser_cache(request: Request, call_next):
        response = await call_next(request)
        if request.method in {"GET", "HEAD"}:
            response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
        return response

    # Live references for routes
    app.state.config = config
    app.state.meter = meter
    app.state.config_manager = config_manager
    app.state.meter_loop = None

    from tariff_meter.dashboard.routes.api import router as api_router
    from tariff_meter.dashboard.routes.settings import router as settings_router

    app.include_router(settings_router, prefix="/api")
    app.include_router(api_router, prefix="/api")

    return app
