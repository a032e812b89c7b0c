"""Modelo de dominio para lecturas de telemetría."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class MetricSpec:
    """Descripción de una métrica del sensor."""
    name: str
    key: str
    label: str
    unit: str


AIR_TEMPERATURE = MetricSpec("air_temperature", "airTemperature", "Air temperature", "°C")
AIR_HUMIDITY = MetricSpec("air_humidity", "airHumidity", "Air humidity", "%")
SOIL_MOISTURE = MetricSpec("soil_moisture", "soilMoisture", "Soil moisture", "%")
SOIL_TEMPERATURE = MetricSpec("soil_temperature", "soilTemperature", "Soil temperature", "°C")
LIGHT_LEVEL = MetricSpec("light_level", "lightLevel", "Light level", " lux")

# Orden canónico de evaluación de alertas.
METRICS: tuple[MetricSpec, ...] = (
    AIR_TEMPERATURE,
    AIR_HUMIDITY,
    SOIL_MOISTURE,
    SOIL_TEMPERATURE,
    LIGHT_LEVEL,
)


@dataclass(frozen=True)
class TelemetryReading:
    """Lectura persistida - inmutable una vez escrita.

    `recorded_at` lo asigna el servidor y `id` es la secuencia de inserción.
    """
    device_id: str
    air_temperature: float
    air_humidity: float
    soil_temperature: float
    soil_moisture: float
    light_level: float
    recorded_at: datetime
    id: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "deviceId": self.device_id,
            "airTemperature": self.air_temperature,
            "airHumidity": self.air_humidity,
            "soilTemperature": self.soil_temperature,
            "soilMoisture": self.soil_moisture,
            "lightLevel": self.light_level,
            "recordedAt": self.recorded_at.isoformat(),
        }
