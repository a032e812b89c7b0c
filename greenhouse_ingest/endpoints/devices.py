"""Endpoints de diagnóstico: estado y telemetría reciente por dispositivo."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request

from ..core.domain.device import is_valid_device_id
from ..queries import DEFAULT_LIMIT, get_device_status, recent_telemetry

router = APIRouter(prefix="/devices", tags=["devices"])


def _require_api_key(
    request: Request,
    x_api_key: Optional[str] = Header(default=None, alias="X-API-Key"),
) -> None:
    # If INGEST_API_KEY is not set, we allow requests (dev mode).
    expected = request.app.state.settings.ingest_api_key
    if not expected:
        return
    if x_api_key != expected:
        raise HTTPException(status_code=401, detail="Invalid API key")


def _engine(request: Request):
    receiver = request.app.state.receiver
    if receiver is None or receiver.engine is None:
        raise HTTPException(status_code=503, detail="storage not available")
    return receiver.engine


def _check_device_id(device_id: str) -> None:
    if not is_valid_device_id(device_id):
        raise HTTPException(status_code=400, detail="Invalid device ID format")


@router.get("/{device_id}/status", dependencies=[Depends(_require_api_key)])
def device_status(device_id: str, request: Request):
    _check_device_id(device_id)
    return get_device_status(_engine(request), device_id).to_dict()


@router.get("/{device_id}/telemetry", dependencies=[Depends(_require_api_key)])
def device_telemetry(
    device_id: str,
    request: Request,
    limit: int = DEFAULT_LIMIT,
    since: Optional[datetime] = None,
):
    _check_device_id(device_id)
    readings = recent_telemetry(_engine(request), device_id, limit=limit, since=since)
    return {
        "deviceId": device_id,
        "count": len(readings),
        "readings": [r.to_dict() for r in readings],
    }
