"""Health checks del receptor."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.engine import Engine

from ...db import check_connection
from .stats import Stats


@dataclass
class HealthStatus:
    """Estado de salud del receptor."""
    healthy: bool
    running: bool
    mqtt_connected: bool
    db_connected: bool
    reconnect_count: int
    messages_processed: int
    messages_failed: int
    messages_rejected: int

    def to_dict(self) -> dict:
        return {
            "healthy": self.healthy,
            "running": self.running,
            "mqtt_connected": self.mqtt_connected,
            "db_connected": self.db_connected,
            "reconnect_count": self.reconnect_count,
            "messages_processed": self.messages_processed,
            "messages_failed": self.messages_failed,
            "messages_rejected": self.messages_rejected,
        }


class HealthChecker:
    """Verifica el estado de salud del sistema."""

    def __init__(self, engine: Optional[Engine] = None):
        self._engine = engine

    def check_database(self) -> bool:
        if not self._engine:
            return False
        return check_connection(self._engine)

    def get_status(
        self,
        running: bool,
        mqtt_connected: bool,
        reconnect_count: int,
        stats: Stats,
    ) -> HealthStatus:
        db_ok = self.check_database()
        return HealthStatus(
            healthy=running and mqtt_connected and db_ok,
            running=running,
            mqtt_connected=mqtt_connected,
            db_connected=db_ok,
            reconnect_count=reconnect_count,
            messages_processed=stats.processed,
            messages_failed=stats.failed,
            messages_rejected=stats.rejected,
        )
