"""Receptor de ingesta - Punto de entrada principal.

Compone:
- transport/   → MQTTClient + MessageHandler
- validation/  → decodificación de payloads
- pipeline/    → IngestProcessor + workers
- persistence/ → devices, telemetry, device_status, alert_rules
- alerts/      → evaluación de reglas + AlertSink
- monitoring/  → stats, métricas y health
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ..config import Settings
from ..db import create_db_engine
from .alerts.sinks import AlertSink, build_alert_sink
from .monitoring.health import HealthChecker
from .monitoring.stats import Stats
from .persistence.device_registry import DeviceRegistry
from .persistence.schema import ensure_schema
from .persistence.status_store import StatusStore
from .persistence.telemetry_store import TelemetryStore
from .pipeline.async_processor import AsyncIngestProcessor
from .pipeline.processor import IngestProcessor
from .transport.message_handler import MessageHandler
from .transport.mqtt_client import MQTTClient

logger = logging.getLogger(__name__)


class IngestReceiver:
    """Dueño explícito de los recursos de la ingesta.

    Orden de arranque: engine → esquema → workers → handler → MQTT.
    Orden de parada: handler deja de aceptar → MQTT desconecta →
    workers drenan → pool de BD se cierra. La BD nunca se cierra antes
    que el transporte.
    """

    def __init__(
        self,
        settings: Settings,
        engine: Optional[Engine] = None,
        alert_sink: Optional[AlertSink] = None,
        mqtt_client: Optional[MQTTClient] = None,
    ):
        self._settings = settings
        self._engine = engine
        self._owns_engine = engine is None
        self._alert_sink = alert_sink
        self._mqtt = mqtt_client
        self._stats = Stats()
        self._workers: Optional[AsyncIngestProcessor] = None
        self._handler: Optional[MessageHandler] = None
        self._health: Optional[HealthChecker] = None
        self._running = False
        self._schema_ready = not settings.db_auto_migrate

    def start(self) -> None:
        """Inicia el receptor.

        Si la BD no responde, el esquema queda pendiente y el transporte
        arranca igual: `/ready` responde 503 hasta que `prepare_schema` tenga
        éxito.
        """
        if self._running:
            return

        # 1. BD
        if self._engine is None:
            self._engine = create_db_engine(self._settings)
        if self._settings.db_auto_migrate:
            self.prepare_schema()

        # 2. Pipeline
        processor = IngestProcessor(
            registry=DeviceRegistry(self._engine, self._settings.sentinel_owner_id),
            telemetry_store=TelemetryStore(self._engine),
            status_store=StatusStore(self._engine),
            alert_sink=self._alert_sink or build_alert_sink(
                self._settings.alert_webhook_url,
                self._settings.internal_api_key,
            ),
            stats=self._stats,
        )
        self._workers = AsyncIngestProcessor(
            processor,
            max_queue_size=self._settings.ingest_queue_size,
            num_workers=self._settings.ingest_num_workers,
        )
        self._workers.start()

        # 3. Handler
        self._handler = MessageHandler(self._workers.submit, self._stats)

        # 4. MQTT
        if self._mqtt is None:
            self._mqtt = MQTTClient(
                broker_host=self._settings.mqtt_host,
                broker_port=self._settings.mqtt_port,
                username=self._settings.mqtt_username,
                password=self._settings.mqtt_password,
                client_id_prefix=self._settings.mqtt_client_id_prefix,
                keepalive=self._settings.mqtt_keepalive,
                reconnect_seconds=self._settings.mqtt_reconnect_seconds,
                qos=self._settings.mqtt_qos,
            )
        self._mqtt.set_message_handler(self._handler.handle)
        self._mqtt.start()

        self._health = HealthChecker(self._engine)
        self._running = True
        logger.info("[RECEIVER] Started")

    def stop(self) -> None:
        """Detiene el receptor en orden."""
        if not self._running:
            return
        self._running = False

        if self._handler:
            self._handler.close()

        if self._mqtt:
            self._mqtt.stop()

        if self._workers:
            self._workers.stop(drain=True)

        if self._engine is not None and self._owns_engine:
            self._engine.dispose()
            logger.info("[DB] Connection pool closed")

        logger.info("[RECEIVER] Stopped. %s", self._stats)

    def prepare_schema(self) -> bool:
        """Crea las tablas si faltan. Nunca lanza; devuelve si quedó listo."""
        if self._schema_ready:
            return True
        try:
            ensure_schema(self._engine)
        except SQLAlchemyError as e:
            logger.error("[DB] Schema setup failed, will retry: %s", e)
            return False
        self._schema_ready = True
        return True

    @property
    def schema_ready(self) -> bool:
        return self._schema_ready

    @property
    def engine(self) -> Optional[Engine]:
        return self._engine

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_connected(self) -> bool:
        return self._mqtt.is_connected if self._mqtt else False

    @property
    def stats(self) -> dict:
        """Estadísticas del receptor."""
        return {
            "running": self._running,
            **(self._mqtt.stats if self._mqtt else {"connected": False}),
            **self._stats.to_dict(),
            "workers": self._workers.metrics if self._workers else {},
        }

    def health_check(self) -> dict:
        """Health check del receptor."""
        if not self._health or not self._mqtt:
            return {"healthy": False, "running": self._running, "reason": "Not initialized"}

        status = self._health.get_status(
            running=self._running,
            mqtt_connected=self.is_connected,
            reconnect_count=self._mqtt.reconnect_count,
            stats=self._stats,
        )
        return status.to_dict()
