"""Evaluación de reglas de alerta.

Función pura: no persiste ni notifica, solo devuelve los mensajes.
"""

from __future__ import annotations

from typing import Any, Optional

from ..domain.alert_rules import AlertRules
from ..domain.telemetry import METRICS, MetricSpec


def _format_value(value: float) -> str:
    return f"{value:g}"


def _metric_value(reading: Any, metric: MetricSpec) -> Optional[float]:
    # Acepta TelemetryReading, TelemetryPayload o un dict (snake_case o camelCase).
    if isinstance(reading, dict):
        value = reading.get(metric.name, reading.get(metric.key))
    else:
        value = getattr(reading, metric.name, None)
    return float(value) if value is not None else None


def _max_message(metric: MetricSpec, value: float, limit: float) -> str:
    return (
        f"{metric.label} is above maximum: "
        f"{_format_value(value)}{metric.unit} (max {_format_value(limit)}{metric.unit})"
    )


def _min_message(metric: MetricSpec, value: float, limit: float) -> str:
    return (
        f"{metric.label} is below minimum: "
        f"{_format_value(value)}{metric.unit} (min {_format_value(limit)}{metric.unit})"
    )


def evaluate(reading: Any, rules: AlertRules) -> list[str]:
    """Evalúa una lectura contra las reglas del dispositivo.

    Reglas:
    - valor > max → una alerta; valor < min → una alerta
    - nunca ambas para la misma métrica (max tiene prioridad)
    - umbral None → chequeo desactivado
    - orden fijo: METRICS

    Returns:
        Lista ordenada de mensajes (vacía si no hay alertas)
    """
    alerts: list[str] = []

    for metric in METRICS:
        value = _metric_value(reading, metric)
        if value is None:
            continue

        max_limit = rules.threshold(metric.name, "max")
        min_limit = rules.threshold(metric.name, "min")

        if max_limit is not None and value > max_limit:
            alerts.append(_max_message(metric, value, max_limit))
        elif min_limit is not None and value < min_limit:
            alerts.append(_min_message(metric, value, min_limit))

    return alerts
