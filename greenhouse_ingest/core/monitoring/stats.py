"""Estadísticas de procesamiento."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass
class Stats:
    """Estadísticas de mensajes MQTT.

    Se actualiza desde el thread de red de paho (received/rejected/dropped)
    y desde los workers (processed/failed/alerts), por eso usa lock.
    """

    received: int = 0
    rejected: int = 0
    dropped: int = 0
    processed: int = 0
    failed: int = 0
    alerts: int = 0
    last_message_at: float = 0
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def incr(self, name: str, amount: int = 1) -> None:
        with self._lock:
            setattr(self, name, getattr(self, name) + amount)

    def __str__(self) -> str:
        return (
            f"Stats: received={self.received} rejected={self.rejected} dropped={self.dropped} "
            f"processed={self.processed} failed={self.failed} alerts={self.alerts}"
        )

    def to_dict(self) -> dict:
        """Convierte a diccionario."""
        with self._lock:
            return {
                "received": self.received,
                "rejected": self.rejected,
                "dropped": self.dropped,
                "processed": self.processed,
                "failed": self.failed,
                "alerts": self.alerts,
                "last_message_at": self.last_message_at,
                "started_at": self.started_at.isoformat(),
                "success_rate": self._success_rate(),
            }

    def _success_rate(self) -> float:
        total = self.processed + self.failed
        if total == 0:
            return 1.0
        return self.processed / total
