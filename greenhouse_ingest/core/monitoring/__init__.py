"""Monitoring - Stats, métricas Prometheus y health."""

from .health import HealthChecker, HealthStatus
from .stats import Stats

__all__ = ["HealthChecker", "HealthStatus", "Stats"]
