"""Métricas Prometheus de la ingesta."""

from __future__ import annotations

from prometheus_client import Counter, Gauge

MQTT_MESSAGES = Counter(
    "greenhouse_ingest_messages_total",
    "MQTT messages handled by kind and outcome",
    ["kind", "outcome"],  # outcome: accepted, rejected, dropped, stored, failed
)

MQTT_CONNECTION_EVENTS = Counter(
    "greenhouse_ingest_mqtt_connection_events_total",
    "MQTT connection lifecycle events",
    ["event"],  # connected, reconnecting, error, offline
)

MQTT_CONNECTED = Gauge(
    "greenhouse_ingest_mqtt_connected",
    "MQTT connection status (1 connected, 0 not connected)",
)

ALERTS_EMITTED = Counter(
    "greenhouse_ingest_alerts_total",
    "Alert messages handed to the alert sink",
)
