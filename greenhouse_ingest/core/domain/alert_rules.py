"""Umbrales de alerta por dispositivo."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class AlertRules:
    """Umbrales min/max opcionales por métrica.

    Un campo en None desactiva ese chequeo. Un umbral de 0 es un umbral real.
    """
    air_temperature_min: Optional[float] = None
    air_temperature_max: Optional[float] = None
    air_humidity_min: Optional[float] = None
    air_humidity_max: Optional[float] = None
    soil_temperature_min: Optional[float] = None
    soil_temperature_max: Optional[float] = None
    soil_moisture_min: Optional[float] = None
    soil_moisture_max: Optional[float] = None
    light_level_min: Optional[float] = None
    light_level_max: Optional[float] = None

    @classmethod
    def defaults(cls) -> "AlertRules":
        """Reglas con las que se crea un dispositivo nuevo."""
        return cls(
            air_temperature_min=15.0,
            air_temperature_max=35.0,
            air_humidity_min=30.0,
            air_humidity_max=90.0,
            soil_moisture_min=40.0,
            soil_moisture_max=90.0,
            light_level_min=200.0,
        )

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> "AlertRules":
        values = {}
        for f in fields(cls):
            raw = row.get(f.name)
            values[f.name] = float(raw) if raw is not None else None
        return cls(**values)

    def threshold(self, metric: str, bound: str) -> Optional[float]:
        return getattr(self, f"{metric}_{bound}")

    def to_dict(self) -> dict:
        return asdict(self)
