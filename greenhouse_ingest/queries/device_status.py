"""Queries de telemetría y estado de dispositivos.

Lecturas ordenadas por tiempo (más reciente primero) con límite de filas
acotado. El liveness se deriva aquí con la función pura `is_online`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.engine import Engine

from ..core.domain.liveness import is_online
from ..core.domain.status import DeviceStatusRecord
from ..core.domain.telemetry import TelemetryReading
from ..core.persistence.schema import device_status, telemetry

DEFAULT_LIMIT = 100
MAX_LIMIT = 1000


def clamp_limit(limit: Optional[int]) -> int:
    """Límite de filas: None → 100, fuera de [1, 1000] se recorta."""
    if limit is None:
        return DEFAULT_LIMIT
    return max(1, min(int(limit), MAX_LIMIT))


@dataclass(frozen=True)
class DeviceStatusView:
    device_id: str
    status: Optional[str]
    reported_at: Optional[datetime]
    online: bool

    def to_dict(self) -> dict:
        return {
            "deviceId": self.device_id,
            "status": self.status,
            "reportedAt": self.reported_at.isoformat() if self.reported_at else None,
            "online": self.online,
        }


def _to_reading(row) -> TelemetryReading:
    return TelemetryReading(
        id=int(row.id),
        device_id=str(row.device_id),
        air_temperature=float(row.air_temperature),
        air_humidity=float(row.air_humidity),
        soil_temperature=float(row.soil_temperature),
        soil_moisture=float(row.soil_moisture),
        light_level=float(row.light_level),
        recorded_at=row.recorded_at,
    )


def recent_telemetry(
    engine: Engine,
    device_id: str,
    limit: Optional[int] = DEFAULT_LIMIT,
    since: Optional[datetime] = None,
) -> list[TelemetryReading]:
    """Últimas lecturas del dispositivo, más reciente primero."""
    stmt = select(telemetry).where(telemetry.c.device_id == device_id)
    if since is not None:
        stmt = stmt.where(telemetry.c.recorded_at >= since)
    stmt = stmt.order_by(
        telemetry.c.recorded_at.desc(),
        telemetry.c.id.desc(),
    ).limit(clamp_limit(limit))

    with engine.connect() as conn:
        rows = conn.execute(stmt).fetchall()
    return [_to_reading(row) for row in rows]


def recent_statuses(engine: Engine, limit: Optional[int] = DEFAULT_LIMIT) -> list[DeviceStatusRecord]:
    """Último estado de cada dispositivo, reportados más recientemente primero."""
    stmt = (
        select(device_status)
        .order_by(device_status.c.reported_at.desc())
        .limit(clamp_limit(limit))
    )
    with engine.connect() as conn:
        rows = conn.execute(stmt).fetchall()
    return [
        DeviceStatusRecord(
            device_id=str(row.device_id),
            status=str(row.status),
            reported_at=row.reported_at,
        )
        for row in rows
    ]


def get_device_status(
    engine: Engine,
    device_id: str,
    now: Optional[datetime] = None,
) -> DeviceStatusView:
    """Estado del dispositivo con `online` derivado.

    Un dispositivo que nunca reportó estado se considera offline.
    """
    with engine.connect() as conn:
        row = conn.execute(
            select(device_status.c.status, device_status.c.reported_at)
            .where(device_status.c.device_id == device_id)
        ).fetchone()

    if row is None:
        return DeviceStatusView(device_id=device_id, status=None, reported_at=None, online=False)

    now = now or datetime.now(timezone.utc)
    return DeviceStatusView(
        device_id=device_id,
        status=str(row.status),
        reported_at=row.reported_at,
        online=is_online(row.status, row.reported_at, now),
    )
