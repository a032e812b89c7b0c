"""Queries de lectura expuestas a otros componentes."""

from .device_status import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    DeviceStatusView,
    clamp_limit,
    get_device_status,
    recent_statuses,
    recent_telemetry,
)

__all__ = [
    "DEFAULT_LIMIT",
    "MAX_LIMIT",
    "DeviceStatusView",
    "clamp_limit",
    "get_device_status",
    "recent_statuses",
    "recent_telemetry",
]
