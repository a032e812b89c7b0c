"""Último estado reportado por un dispositivo."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from .liveness import LIVENESS_WINDOW, is_online


@dataclass(frozen=True)
class DeviceStatusRecord:
    device_id: str
    status: str
    reported_at: datetime

    def is_online(self, now: datetime, window: timedelta = LIVENESS_WINDOW) -> bool:
        return is_online(self.status, self.reported_at, now, window)

    def to_dict(self, now: datetime) -> dict:
        return {
            "deviceId": self.device_id,
            "status": self.status,
            "reportedAt": self.reported_at.isoformat(),
            "online": self.is_online(now),
        }
