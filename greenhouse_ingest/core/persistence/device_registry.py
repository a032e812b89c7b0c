"""Registro de dispositivos: auto-provisión y lectura de reglas."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from ..domain.alert_rules import AlertRules
from .schema import alert_rules, devices, upsert_insert

logger = logging.getLogger(__name__)

PG_UNIQUE_VIOLATION = "23505"


def _is_unique_violation(exc: IntegrityError) -> bool:
    """True solo para el conflicto "ya existe" (PostgreSQL o SQLite)."""
    if getattr(exc.orig, "pgcode", None) == PG_UNIQUE_VIOLATION:
        return True
    return "UNIQUE constraint failed" in str(exc.orig)


class DeviceRegistry:
    """Acceso a devices y alert_rules."""

    def __init__(self, engine: Engine, sentinel_owner_id: int = 1):
        self._engine = engine
        self._sentinel_owner_id = sentinel_owner_id

    def ensure_exists(self, device_id: str, owner_id: Optional[int] = None) -> bool:
        """Crea el dispositivo si no existe (idempotente).

        Contrato: ignora SOLO el conflicto "ya existe" (ON CONFLICT DO NOTHING
        o una violación de unicidad por una creación concurrente). Cualquier
        otro error, incluidas otras violaciones de integridad, se propaga.

        Un dispositivo nuevo se crea junto con sus reglas por defecto y queda
        asignado a la cuenta centinela hasta que un usuario lo reclame.

        Returns:
            True si se creó, False si ya existía
        """
        owner = owner_id if owner_id is not None else self._sentinel_owner_id
        now = datetime.now(timezone.utc)

        try:
            with self._engine.begin() as conn:
                stmt = upsert_insert(conn, devices).values(
                    device_id=device_id,
                    user_id=owner,
                    created_at=now,
                )
                result = conn.execute(stmt.on_conflict_do_nothing(index_elements=["device_id"]))
                created = result.rowcount == 1

                if created:
                    rules_stmt = upsert_insert(conn, alert_rules).values(
                        device_id=device_id,
                        **AlertRules.defaults().to_dict(),
                    )
                    conn.execute(rules_stmt.on_conflict_do_nothing(index_elements=["device_id"]))
        except IntegrityError as e:
            if not _is_unique_violation(e):
                raise
            logger.debug("[DB] Device %s created concurrently", device_id)
            return False

        if created:
            logger.info("[DB] Device auto-provisioned device=%s owner=%s", device_id, owner)
        return created

    def get_alert_rules(self, device_id: str) -> Optional[AlertRules]:
        """Reglas vigentes del dispositivo, o None si no tiene."""
        with self._engine.connect() as conn:
            row = conn.execute(
                select(alert_rules).where(alert_rules.c.device_id == device_id)
            ).mappings().first()

        if row is None:
            return None
        return AlertRules.from_mapping(row)

    def exists(self, device_id: str) -> bool:
        with self._engine.connect() as conn:
            row = conn.execute(
                select(devices.c.device_id).where(devices.c.device_id == device_id)
            ).first()
        return row is not None
