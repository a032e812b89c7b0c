"""Domain - Modelos de dominio de la ingesta."""

from .alert_rules import AlertRules
from .device import DEVICE_ID_PATTERN, is_valid_device_id
from .liveness import LIVENESS_WINDOW, ONLINE_STATUS, is_online
from .status import DeviceStatusRecord
from .telemetry import METRICS, MetricSpec, TelemetryReading

__all__ = [
    "AlertRules",
    "DEVICE_ID_PATTERN",
    "is_valid_device_id",
    "LIVENESS_WINDOW",
    "ONLINE_STATUS",
    "is_online",
    "DeviceStatusRecord",
    "METRICS",
    "MetricSpec",
    "TelemetryReading",
]
