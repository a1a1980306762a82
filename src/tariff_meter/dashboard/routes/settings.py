"""Settings query surface: read and partially update tariff settings."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from tariff_meter.config.schema import SettingsUpdate

router = APIRouter()
logger = logging.getLogger(__name__)


def settings_payload(request: Request) -> dict[str, Any]:
    tariff = request.app.state.config.tariff
    return {
        "currency": tariff.currency,
        "dayRate": tariff.effective_day_rate,
        "nightRate": tariff.effective_night_rate,
        "seasons": [s.model_dump(by_alias=True) for s in tariff.seasons],
    }


@router.get("/settings")
async def get_settings(request: Request) -> dict:
    """Current currency, rates and seasons."""
    return settings_payload(request)


@router.put("/settings")
async def put_settings(request: Request) -> JSONResponse:
    """Apply the fields present in the body; absent fields are left alone."""
    config_manager = request.app.state.config_manager
    if config_manager is None:
        return JSONResponse({"success": False, "error": "Config manager not available"}, status_code=503)

    try:
        body = await request.json()
    except ValueError:
        return JSONResponse({"success": False, "error": "Body must be JSON"}, status_code=400)
    if not isinstance(body, dict):
        return JSONResponse({"success": False, "error": "Body must be an object"}, status_code=400)

    try:
        update = SettingsUpdate.model_validate(body)
        updates = {"tariff": update.model_dump(exclude_unset=True)}
        config_manager.validate_update(updates)
    except (ValidationError, ValueError) as e:
        error_msg = str(e).replace("\n", " ")[:200]
        logger.warning("Settings validation failed: %s", error_msg)
        return JSONResponse({"success": False, "error": error_msg}, status_code=422)

    try:
        new_config = config_manager.save_user_config(updates)
    except OSError as e:
        logger.exception("Failed to save settings")
        return JSONResponse({"success": False, "error": f"Save failed: {e}"}, status_code=500)
    request.app.state.config = new_config

    logger.info("Settings saved: changed=%s", list(updates["tariff"].keys()))
    return JSONResponse({"success": True})
