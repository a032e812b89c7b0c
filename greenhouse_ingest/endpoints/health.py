"""Health, readiness and metrics endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from ..db import check_connection

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    """Liveness check: ok while the process is running."""
    return {"status": "ok"}


@router.get("/ready")
def ready(request: Request):
    """Readiness check: checks DB connectivity and retries pending schema setup."""
    receiver = request.app.state.receiver
    engine = receiver.engine if receiver else None
    if engine is None or not check_connection(engine):
        raise HTTPException(status_code=503, detail="not ready")
    if not receiver.prepare_schema():
        raise HTTPException(status_code=503, detail="schema not ready")
    return {"status": "ready"}


@router.get("/mqtt/health")
def mqtt_health(request: Request):
    """Estado del receptor MQTT (conexión, BD, contadores)."""
    receiver = request.app.state.receiver
    if receiver is None:
        return {"healthy": False, "reason": "Receiver not configured"}
    return {**receiver.health_check(), "stats": receiver.stats}


@router.get("/metrics")
def metrics():
    """Prometheus exposition."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
