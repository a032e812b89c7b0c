"""Procesador principal de la ingesta."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from ..alerts.evaluator import evaluate
from ..alerts.sinks import AlertSink, LoggingAlertSink
from ..domain.telemetry import TelemetryReading
from ..monitoring import metrics
from ..monitoring.stats import Stats
from ..persistence.device_registry import DeviceRegistry
from ..persistence.status_store import StatusStore
from ..persistence.telemetry_store import TelemetryStore
from .jobs import IngestJob, StatusJob, TelemetryJob

logger = logging.getLogger(__name__)


class IngestProcessor:
    """Procesa trabajos validados a través del pipeline.

    Pipeline de telemetría:
    1. Auto-provisión del dispositivo
    2. INSERT de la lectura
    3. Evaluación de reglas → traspaso al AlertSink

    Pipeline de estado:
    1. Auto-provisión del dispositivo
    2. Upsert de device_status

    Un fallo de BD descarta el mensaje (log ERROR, sin reintento).
    """

    def __init__(
        self,
        registry: DeviceRegistry,
        telemetry_store: TelemetryStore,
        status_store: StatusStore,
        alert_sink: Optional[AlertSink] = None,
        stats: Optional[Stats] = None,
    ):
        self._registry = registry
        self._telemetry = telemetry_store
        self._status = status_store
        self._alert_sink = alert_sink or LoggingAlertSink()
        self._stats = stats or Stats()

    def process(self, job: IngestJob) -> bool:
        """Procesa un trabajo.

        Returns:
            True si se persistió correctamente
        """
        if isinstance(job, TelemetryJob):
            return self.process_telemetry(job)
        if isinstance(job, StatusJob):
            return self.process_status(job)
        raise TypeError(f"Unsupported job type: {type(job).__name__}")

    def process_telemetry(self, job: TelemetryJob) -> bool:
        device_id = job.device_id
        try:
            self._registry.ensure_exists(device_id)
            reading = self._telemetry.insert(job.payload)
        except SQLAlchemyError as e:
            logger.error("[PROCESSOR] Failed to store telemetry device=%s: %s", device_id, e)
            self._mark_failed("telemetry")
            return False

        self._mark_stored("telemetry")
        self._check_alerts(reading)
        return True

    def process_status(self, job: StatusJob) -> bool:
        try:
            self._registry.ensure_exists(job.device_id)
            self._status.record(job.device_id, job.status)
        except SQLAlchemyError as e:
            logger.error("[PROCESSOR] Failed to store status device=%s: %s", job.device_id, e)
            self._mark_failed("status")
            return False

        self._mark_stored("status")
        return True

    def _check_alerts(self, reading: TelemetryReading) -> None:
        # La lectura ya está persistida: un fallo aquí no la revierte.
        try:
            rules = self._registry.get_alert_rules(reading.device_id)
        except SQLAlchemyError as e:
            logger.error("[PROCESSOR] Failed to load alert rules device=%s: %s", reading.device_id, e)
            return

        if rules is None:
            return

        messages = evaluate(reading, rules)
        if not messages:
            return

        try:
            self._alert_sink.on_alert(reading.device_id, messages)
        except Exception:
            logger.exception("[PROCESSOR] Alert sink failed device=%s", reading.device_id)
            return

        self._stats.incr("alerts", len(messages))
        metrics.ALERTS_EMITTED.inc(len(messages))

    def _mark_stored(self, kind: str) -> None:
        self._stats.incr("processed")
        metrics.MQTT_MESSAGES.labels(kind=kind, outcome="stored").inc()

    def _mark_failed(self, kind: str) -> None:
        self._stats.incr("failed")
        metrics.MQTT_MESSAGES.labels(kind=kind, outcome="failed").inc()

    @property
    def stats(self) -> Stats:
        return self._stats
