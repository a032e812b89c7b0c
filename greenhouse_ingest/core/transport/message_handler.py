"""Handler de mensajes MQTT."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from ..monitoring import metrics
from ..monitoring.stats import Stats
from ..pipeline.jobs import IngestJob, StatusJob, TelemetryJob
from ..validation.payload_validator import decode_status, decode_telemetry
from .topic_router import MessageKind, parse_topic

logger = logging.getLogger(__name__)


class MessageHandler:
    """Punto de entrada único para los mensajes del broker.

    Responsabilidades:
    - Clasificación del topic
    - Decodificación y validación del payload
    - Entrega del trabajo validado al pipeline (`submit`)

    Corre en el thread de red de paho: solo hace trabajo de CPU, nunca I/O.
    """

    def __init__(
        self,
        submit: Callable[[IngestJob], bool],
        stats: Optional[Stats] = None,
    ):
        self._submit = submit
        self._stats = stats or Stats()
        self._accepting = True

    def handle(self, topic: str, payload: bytes) -> None:
        """Procesa un mensaje MQTT. Nunca lanza."""
        self._stats.incr("received")
        self._stats.last_message_at = time.time()

        if not self._accepting:
            logger.debug("[HANDLER] Shutting down, ignoring message topic=%s", topic)
            self._stats.incr("dropped")
            return

        try:
            job = self._to_job(topic, payload)
            if job is None:
                return

            kind = "telemetry" if isinstance(job, TelemetryJob) else "status"
            if self._submit(job):
                metrics.MQTT_MESSAGES.labels(kind=kind, outcome="accepted").inc()
            else:
                self._stats.incr("dropped")
                metrics.MQTT_MESSAGES.labels(kind=kind, outcome="dropped").inc()
        except Exception:
            logger.exception("[HANDLER] Unexpected error topic=%s", topic)
            self._stats.incr("failed")

    def _to_job(self, topic: str, payload: bytes) -> Optional[IngestJob]:
        match = parse_topic(topic)
        if match is None:
            logger.warning("[HANDLER] Ignoring unexpected topic=%s", topic)
            self._reject("unknown")
            return None

        if match.kind is MessageKind.TELEMETRY:
            result = decode_telemetry(payload, match.device_id)
            if not result.ok:
                logger.warning(
                    "[HANDLER] Telemetry payload rejected device=%s reason=%s detail=%s",
                    match.device_id,
                    result.reason.value,
                    result.detail,
                )
                self._reject("telemetry")
                return None
            return TelemetryJob(payload=result.value)

        result = decode_status(payload)
        if not result.ok:
            logger.warning(
                "[HANDLER] Status payload rejected device=%s reason=%s detail=%s",
                match.device_id,
                result.reason.value,
                result.detail,
            )
            self._reject("status")
            return None
        return StatusJob(device_id=match.device_id, status=result.value)

    def _reject(self, kind: str) -> None:
        self._stats.incr("rejected")
        metrics.MQTT_MESSAGES.labels(kind=kind, outcome="rejected").inc()

    def close(self) -> None:
        """Deja de aceptar mensajes nuevos."""
        self._accepting = False

    @property
    def is_accepting(self) -> bool:
        return self._accepting

    @property
    def stats(self) -> Stats:
        return self._stats
