"""Liveness derivado del último estado reportado.

Función pura: no toca la BD, recibe `now` explícito.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

ONLINE_STATUS = "online"
LIVENESS_WINDOW = timedelta(minutes=2)


def _as_utc(value: datetime) -> datetime:
    # Las columnas sin zona horaria se guardan en UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_online(
    status: Optional[str],
    reported_at: Optional[datetime],
    now: datetime,
    window: timedelta = LIVENESS_WINDOW,
) -> bool:
    """True si el último estado es "online" y se reportó dentro de la ventana."""
    if status != ONLINE_STATUS or reported_at is None:
        return False
    return _as_utc(now) - _as_utc(reported_at) < window
