"""Persistencia del último estado por dispositivo."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy.engine import Engine

from ..domain.status import DeviceStatusRecord
from .schema import device_status, upsert_insert

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StatusStore:
    """Upsert de device_status: una fila por dispositivo, last write wins.

    No compara contra el reported_at existente: la última escritura que
    confirma en la BD gana. Tampoco calcula online/offline.
    """

    def __init__(self, engine: Engine, clock: Optional[Callable[[], datetime]] = None):
        self._engine = engine
        self._clock = clock or _utcnow

    def record(self, device_id: str, status: str) -> DeviceStatusRecord:
        reported_at = self._clock()

        with self._engine.begin() as conn:
            stmt = upsert_insert(conn, device_status).values(
                device_id=device_id,
                status=status,
                reported_at=reported_at,
            )
            conn.execute(
                stmt.on_conflict_do_update(
                    index_elements=["device_id"],
                    set_={
                        "status": stmt.excluded.status,
                        "reported_at": stmt.excluded.reported_at,
                    },
                )
            )

        logger.debug("[DB] Status updated device=%s status=%s", device_id, status)
        return DeviceStatusRecord(device_id=device_id, status=status, reported_at=reported_at)
