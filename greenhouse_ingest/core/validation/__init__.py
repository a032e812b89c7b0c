"""Validation - Decodificación y validación de payloads."""

from .payload_validator import (
    DecodeResult,
    RejectReason,
    StatusPayload,
    TelemetryPayload,
    decode_status,
    decode_telemetry,
)

__all__ = [
    "DecodeResult",
    "RejectReason",
    "StatusPayload",
    "TelemetryPayload",
    "decode_status",
    "decode_telemetry",
]
