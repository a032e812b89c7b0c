"""Validador de payloads MQTT.

Decodifica el payload crudo a un valor tipado o a un motivo de rechazo
con nombre. Nunca lanza: cualquier fallo es un `DecodeResult` rechazado.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

import orjson
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..domain.device import DEVICE_ID_PATTERN

T = TypeVar("T")


class RejectReason(str, Enum):
    INVALID_ENCODING = "invalid_encoding"
    INVALID_JSON = "invalid_json"
    SCHEMA_VIOLATION = "schema_violation"
    DEVICE_MISMATCH = "device_mismatch"
    EMPTY_STATUS = "empty_status"


@dataclass(frozen=True)
class DecodeResult(Generic[T]):
    """Resultado de decodificación: valor o motivo de rechazo."""

    value: Optional[T] = None
    reason: Optional[RejectReason] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.reason is None

    @classmethod
    def accept(cls, value: T) -> "DecodeResult[T]":
        return cls(value=value)

    @classmethod
    def reject(cls, reason: RejectReason, detail: str = "") -> "DecodeResult[T]":
        return cls(reason=reason, detail=detail)


def _metric(alias: str, **bounds) -> Any:
    # strict: rechaza strings numéricos y booleanos.
    return Field(..., alias=alias, strict=True, allow_inf_nan=False, **bounds)


class TelemetryPayload(BaseModel):
    """Schema de telemetría.

    Formato esperado:
    {
        "deviceId": "ESP32_001",
        "airTemperature": 24.5,
        "airHumidity": 61.0,
        "soilTemperature": 19.2,
        "soilMoisture": 48.0,
        "lightLevel": 830
    }
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    device_id: str = Field(..., alias="deviceId", strict=True, pattern=DEVICE_ID_PATTERN)
    air_temperature: float = _metric("airTemperature")
    air_humidity: float = _metric("airHumidity", ge=0, le=100)
    soil_temperature: float = _metric("soilTemperature")
    soil_moisture: float = _metric("soilMoisture", ge=0, le=100)
    light_level: float = _metric("lightLevel")


class StatusPayload(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    status: str = Field(..., strict=True, min_length=1)


def _format_errors(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
        for err in exc.errors()
    )


def _decode_text(payload: bytes) -> Optional[str]:
    try:
        return payload.decode("utf-8")
    except UnicodeDecodeError:
        return None


def decode_telemetry(payload: bytes, topic_device_id: str) -> DecodeResult[TelemetryPayload]:
    """Decodifica un payload de telemetría.

    Args:
        payload: Bytes crudos del mensaje MQTT
        topic_device_id: deviceId extraído del topic

    Returns:
        DecodeResult con TelemetryPayload o motivo de rechazo
    """
    text = _decode_text(payload)
    if text is None:
        return DecodeResult.reject(RejectReason.INVALID_ENCODING, "payload is not UTF-8")

    try:
        data = orjson.loads(text)
    except orjson.JSONDecodeError as e:
        return DecodeResult.reject(RejectReason.INVALID_JSON, str(e))

    if not isinstance(data, dict):
        return DecodeResult.reject(
            RejectReason.SCHEMA_VIOLATION,
            f"expected JSON object, got {type(data).__name__}",
        )

    try:
        telemetry = TelemetryPayload.model_validate(data)
    except ValidationError as e:
        return DecodeResult.reject(RejectReason.SCHEMA_VIOLATION, _format_errors(e))

    if telemetry.device_id != topic_device_id:
        return DecodeResult.reject(
            RejectReason.DEVICE_MISMATCH,
            f"payload deviceId={telemetry.device_id} topic deviceId={topic_device_id}",
        )

    return DecodeResult.accept(telemetry)


def _accept_status(value: str) -> DecodeResult[str]:
    status = value.strip()
    if not status:
        return DecodeResult.reject(RejectReason.EMPTY_STATUS, "status is empty")
    return DecodeResult.accept(status)


def decode_status(payload: bytes) -> DecodeResult[str]:
    """Decodifica un payload de estado.

    Acepta `{"status": "online"}` o texto plano (`online`). Si el parseo
    estructurado falla por cualquier motivo (no es JSON, no es un objeto, o
    `status` falta, no es string o está vacío) se usa el texto recortado
    como estado. Solo se rechaza un estado vacío.
    """
    text = _decode_text(payload)
    if text is None:
        return DecodeResult.reject(RejectReason.INVALID_ENCODING, "payload is not UTF-8")

    try:
        structured = StatusPayload.model_validate(orjson.loads(text))
    except (orjson.JSONDecodeError, ValidationError):
        return _accept_status(text)

    return DecodeResult.accept(structured.status)
