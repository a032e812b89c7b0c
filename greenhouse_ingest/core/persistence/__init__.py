"""Persistence - Acceso a BD de la ingesta."""

from .device_registry import DeviceRegistry
from .schema import ensure_schema, metadata
from .status_store import StatusStore
from .telemetry_store import TelemetryStore

__all__ = [
    "DeviceRegistry",
    "StatusStore",
    "TelemetryStore",
    "ensure_schema",
    "metadata",
]
