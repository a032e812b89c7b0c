"""Trabajos de ingesta ya validados, listos para persistir."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from ..validation.payload_validator import TelemetryPayload


@dataclass(frozen=True)
class TelemetryJob:
    payload: TelemetryPayload

    @property
    def device_id(self) -> str:
        return self.payload.device_id


@dataclass(frozen=True)
class StatusJob:
    device_id: str
    status: str


IngestJob = Union[TelemetryJob, StatusJob]
