"""Cliente MQTT para recepción de telemetría y estado."""

from __future__ import annotations

import logging
import threading
import uuid
from typing import Callable, Optional

import paho.mqtt.client as mqtt

from ..monitoring import metrics
from .topic_router import subscription_topics

logger = logging.getLogger(__name__)

MessageCallback = Callable[[str, bytes], None]
EventListener = Callable[[str], None]


def _default_client_factory(client_id: str) -> mqtt.Client:
    return mqtt.Client(
        callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
        client_id=client_id,
        protocol=mqtt.MQTTv311,
        clean_session=True,
    )


class MQTTClient:
    """Conexión persistente al broker MQTT.

    Responsabilidades:
    - Conexión con client_id único por proceso
    - Reconexión infinita a intervalo fijo (sin backoff exponencial)
    - (Re)suscripción a los topics en cada conexión
    - Eventos de ciclo de vida: connected, reconnecting, error, offline
    - Delegación de mensajes al handler

    Un error de transporte nunca termina el proceso.
    """

    def __init__(
        self,
        broker_host: str = "localhost",
        broker_port: int = 1883,
        username: Optional[str] = None,
        password: Optional[str] = None,
        client_id_prefix: str = "greenhouse-ingest",
        keepalive: int = 60,
        reconnect_seconds: float = 3.0,
        qos: int = 1,
        client_factory: Optional[Callable[[str], mqtt.Client]] = None,
        event_listener: Optional[EventListener] = None,
    ):
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.username = username
        self.password = password
        self.client_id = f"{client_id_prefix}-{uuid.uuid4().hex[:8]}"
        self.keepalive = keepalive
        self.reconnect_seconds = reconnect_seconds
        self.qos = qos

        self._client_factory = client_factory or _default_client_factory
        self._event_listener = event_listener
        self._client: Optional[mqtt.Client] = None
        self._message_handler: Optional[MessageCallback] = None
        self._connected = threading.Event()
        self._stopping = False
        self._reconnect_count = 0

    def set_message_handler(self, handler: MessageCallback) -> None:
        """Configura el handler de mensajes."""
        self._message_handler = handler

    def start(self) -> None:
        """Arranca la conexión en segundo plano.

        No bloquea: el loop de paho reintenta la conexión cada
        `reconnect_seconds` hasta que el broker responda.
        """
        self._stopping = False
        self._client = self._client_factory(self.client_id)

        self._client.on_connect = self._on_connect
        self._client.on_connect_fail = self._on_connect_fail
        self._client.on_disconnect = self._on_disconnect
        self._client.on_subscribe = self._on_subscribe
        self._client.on_message = self._on_message

        delay = max(1, int(round(self.reconnect_seconds)))
        self._client.reconnect_delay_set(min_delay=delay, max_delay=delay)

        if self.username:
            self._client.username_pw_set(self.username, self.password)

        logger.info(
            "[MQTT] Connecting to %s:%d client_id=%s",
            self.broker_host, self.broker_port, self.client_id,
        )
        self._client.connect_async(self.broker_host, self.broker_port, keepalive=self.keepalive)
        self._client.loop_start()

    def wait_connected(self, timeout: float = 5.0) -> bool:
        """Espera a la primera conexión. No aborta si vence el timeout."""
        return self._connected.wait(timeout)

    def stop(self) -> None:
        """Desconecta del broker y detiene el loop de red."""
        self._stopping = True
        if self._client:
            try:
                self._client.disconnect()
                self._client.loop_stop()
            except Exception as e:
                logger.warning("[MQTT] Disconnect error: %s", e)
        self._connected.clear()
        metrics.MQTT_CONNECTED.set(0)
        logger.info("[MQTT] Stopped (reconnects=%d)", self._reconnect_count)

    def _emit(self, event: str) -> None:
        metrics.MQTT_CONNECTION_EVENTS.labels(event=event).inc()
        if self._event_listener:
            try:
                self._event_listener(event)
            except Exception:
                logger.exception("[MQTT] Event listener failed event=%s", event)

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        """Callback de conexión - (re)suscribe en cada conexión."""
        if reason_code.is_failure:
            self._connected.clear()
            logger.error("[MQTT] Connection refused: %s", reason_code)
            self._emit("error")
            return

        self._connected.set()
        metrics.MQTT_CONNECTED.set(1)
        logger.info("[MQTT] Connected to broker %s:%d", self.broker_host, self.broker_port)
        self._emit("connected")

        topics = subscription_topics()
        result, _mid = client.subscribe([(topic, self.qos) for topic in topics])
        if result != mqtt.MQTT_ERR_SUCCESS:
            logger.error("[MQTT] Failed to subscribe to %s: rc=%s", topics, result)
            self._emit("error")
        else:
            logger.info("[MQTT] Subscribed to %s", ", ".join(topics))

    def _on_subscribe(self, client, userdata, mid, reason_code_list, properties=None):
        for reason_code in reason_code_list:
            if reason_code.is_failure:
                logger.error("[MQTT] Subscription rejected by broker: %s", reason_code)
                self._emit("error")

    def _on_connect_fail(self, client, userdata):
        """Callback de fallo de conexión (broker inalcanzable)."""
        logger.error(
            "[MQTT] Connection to %s:%d failed, retrying in %.0fs",
            self.broker_host, self.broker_port, self.reconnect_seconds,
        )
        self._emit("error")
        if not self._stopping:
            self._reconnect_count += 1
            self._emit("reconnecting")

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        """Callback de desconexión."""
        self._connected.clear()
        metrics.MQTT_CONNECTED.set(0)
        self._emit("offline")

        if self._stopping:
            logger.info("[MQTT] Disconnected")
            return

        self._reconnect_count += 1
        logger.warning(
            "[MQTT] Disconnected (%s), reconnecting in %.0fs",
            reason_code, self.reconnect_seconds,
        )
        self._emit("reconnecting")

    def _on_message(self, client, userdata, msg):
        """Callback de mensaje - delega al handler."""
        if not self._message_handler:
            return
        try:
            self._message_handler(msg.topic, msg.payload)
        except Exception:
            logger.exception("[MQTT] Message handler failed")

    @property
    def is_connected(self) -> bool:
        return self._connected.is_set()

    @property
    def reconnect_count(self) -> int:
        return self._reconnect_count

    @property
    def stats(self) -> dict:
        return {
            "connected": self.is_connected,
            "broker": f"{self.broker_host}:{self.broker_port}",
            "client_id": self.client_id,
            "reconnect_count": self._reconnect_count,
        }
