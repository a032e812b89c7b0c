"""Alerts - Evaluación de reglas y traspaso de alertas."""

from .evaluator import evaluate
from .sinks import AlertSink, HttpAlertSink, LoggingAlertSink, build_alert_sink

__all__ = [
    "evaluate",
    "AlertSink",
    "HttpAlertSink",
    "LoggingAlertSink",
    "build_alert_sink",
]
