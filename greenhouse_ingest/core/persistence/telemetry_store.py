"""Persistencia de lecturas de telemetría (append-only)."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy import insert
from sqlalchemy.engine import Engine

from ..domain.telemetry import TelemetryReading
from ..validation.payload_validator import TelemetryPayload
from .schema import telemetry

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TelemetryStore:
    """Inserta lecturas validadas.

    Reglas de persistencia:
    - recorded_at lo asigna el servidor (nunca el reloj del dispositivo)
    - id autoincremental = secuencia de inserción
    - sin deduplicación: dos mensajes idénticos → dos filas
    """

    def __init__(self, engine: Engine, clock: Optional[Callable[[], datetime]] = None):
        self._engine = engine
        self._clock = clock or _utcnow

    def insert(self, payload: TelemetryPayload) -> TelemetryReading:
        recorded_at = self._clock()

        with self._engine.begin() as conn:
            result = conn.execute(
                insert(telemetry).values(
                    device_id=payload.device_id,
                    air_temperature=payload.air_temperature,
                    air_humidity=payload.air_humidity,
                    soil_temperature=payload.soil_temperature,
                    soil_moisture=payload.soil_moisture,
                    light_level=payload.light_level,
                    recorded_at=recorded_at,
                )
            )
            reading_id = result.inserted_primary_key[0]

        logger.debug("[DB] Telemetry stored device=%s id=%s", payload.device_id, reading_id)

        return TelemetryReading(
            device_id=payload.device_id,
            air_temperature=payload.air_temperature,
            air_humidity=payload.air_humidity,
            soil_temperature=payload.soil_temperature,
            soil_moisture=payload.soil_moisture,
            light_level=payload.light_level,
            recorded_at=recorded_at,
            id=int(reading_id),
        )
