"""Tests del receptor completo y de los endpoints HTTP.

El broker se simula con un cliente paho falso; la BD es SQLite.
"""

from dataclasses import replace
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from paho.mqtt.packettypes import PacketTypes
from paho.mqtt.reasoncodes import ReasonCode
from sqlalchemy import create_engine, func, select

from greenhouse_ingest.core.alerts import AlertSink
from greenhouse_ingest.core.persistence.schema import device_status, telemetry
from greenhouse_ingest.core.receiver import IngestReceiver
from greenhouse_ingest.core.transport import MQTTClient
from greenhouse_ingest.main import create_app


def _count(engine, table) -> int:
    with engine.connect() as conn:
        return conn.execute(select(func.count()).select_from(table)).scalar_one()


def _deliver(mqtt_client: MQTTClient, topic: str, payload: bytes) -> None:
    mqtt_client._on_message(None, None, SimpleNamespace(topic=topic, payload=payload))


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def mqtt_client(paho_client) -> MQTTClient:
    return MQTTClient(broker_host="broker.test", client_factory=lambda client_id: paho_client)


@pytest.fixture
def alert_sink() -> MagicMock:
    return MagicMock(spec=AlertSink)


@pytest.fixture
def receiver(settings, engine, mqtt_client, alert_sink):
    r = IngestReceiver(settings, engine=engine, alert_sink=alert_sink, mqtt_client=mqtt_client)
    r.start()
    yield r
    r.stop()


# =============================================================================
# RECEPTOR
# =============================================================================

class TestIngestReceiver:

    def test_start_wires_transport(self, receiver, paho_client):
        assert receiver.is_running
        paho_client.connect_async.assert_called_once()
        paho_client.loop_start.assert_called_once()

    def test_messages_persisted_before_stop_returns(self, receiver, mqtt_client, engine, telemetry_data, encode):
        for _ in range(10):
            _deliver(mqtt_client, "greenhouse/ESP32_001/telemetry", encode(telemetry_data))
        _deliver(mqtt_client, "greenhouse/ESP32_001/status", b"online")

        receiver.stop()

        assert _count(engine, telemetry) == 10
        assert _count(engine, device_status) == 1

    def test_shutdown_order(self, receiver, mqtt_client, paho_client, engine):
        receiver.stop()

        paho_client.disconnect.assert_called_once()
        _deliver(mqtt_client, "greenhouse/ESP32_001/status", b"online")
        assert _count(engine, device_status) == 0
        assert receiver.stats["dropped"] == 1

    def test_injected_engine_not_disposed(self, receiver, engine, monkeypatch):
        dispose = MagicMock()
        monkeypatch.setattr(engine, "dispose", dispose)

        receiver.stop()

        dispose.assert_not_called()

    def test_health_check(self, receiver, mqtt_client, paho_client):
        assert receiver.health_check()["healthy"] is False

        mqtt_client._on_connect(paho_client, None, {}, ReasonCode(PacketTypes.CONNACK, "Success"), None)
        health = receiver.health_check()

        assert health["healthy"] is True
        assert health["db_connected"] is True
        assert health["mqtt_connected"] is True

    def test_stats(self, receiver):
        stats = receiver.stats
        assert stats["running"] is True
        assert stats["broker"] == "broker.test:1883"
        assert stats["workers"]["workers"] == 2

    def test_stop_is_idempotent(self, receiver):
        receiver.stop()
        receiver.stop()
        assert not receiver.is_running


# =============================================================================
# HTTP
# =============================================================================

class TestEndpoints:

    @pytest.fixture
    def http(self, settings, receiver):
        with TestClient(create_app(settings, receiver=receiver)) as client:
            yield client

    def test_health(self, http):
        assert http.get("/health").json() == {"status": "ok"}

    def test_ready(self, http):
        assert http.get("/ready").status_code == 200

    def test_not_ready_without_receiver(self, settings):
        # Sin `with`: el lifespan no corre y no se crea receptor.
        client = TestClient(create_app(settings))
        assert client.get("/ready").status_code == 503
        assert client.get("/mqtt/health").json()["healthy"] is False

    def test_mqtt_health(self, http):
        body = http.get("/mqtt/health").json()
        assert body["running"] is True
        assert body["mqtt_connected"] is False
        assert "stats" in body

    def test_metrics(self, http):
        response = http.get("/metrics")
        assert response.status_code == 200
        assert "greenhouse_ingest_messages_total" in response.text

    def test_device_status(self, http, mqtt_client, receiver):
        _deliver(mqtt_client, "greenhouse/ESP32_001/status", b'{"status": "online"}')
        receiver.stop()

        body = http.get("/devices/ESP32_001/status").json()

        assert body["deviceId"] == "ESP32_001"
        assert body["status"] == "online"
        assert body["online"] is True

    def test_device_telemetry(self, http, mqtt_client, receiver, telemetry_data, encode):
        for _ in range(3):
            _deliver(mqtt_client, "greenhouse/ESP32_001/telemetry", encode(telemetry_data))
        receiver.stop()

        body = http.get("/devices/ESP32_001/telemetry", params={"limit": 2}).json()

        assert body["count"] == 2
        assert body["readings"][0]["deviceId"] == "ESP32_001"
        assert body["readings"][0]["airTemperature"] == 24.5

    def test_invalid_device_id(self, http):
        assert http.get("/devices/not-a-device/status").status_code == 400

    def test_api_key_required(self, settings, receiver):
        secured = replace(settings, ingest_api_key="k3y")
        with TestClient(create_app(secured, receiver=receiver)) as client:
            assert client.get("/devices/ESP32_001/status").status_code == 401
            assert client.get("/devices/ESP32_001/status", headers={"X-API-Key": "k3y"}).status_code == 200
            assert client.get("/health").status_code == 200


# =============================================================================
# BD NO DISPONIBLE AL ARRANCAR
# =============================================================================

class TestDatabaseUnavailableAtStart:

    @pytest.fixture
    def db_dir(self, tmp_path):
        return tmp_path / "not-yet"

    @pytest.fixture
    def offline_receiver(self, settings, db_dir, mqtt_client, alert_sink):
        # SQLite no crea directorios: conectar falla hasta que exista.
        engine = create_engine(
            f"sqlite:///{db_dir / 'greenhouse.db'}",
            connect_args={"check_same_thread": False},
        )
        r = IngestReceiver(settings, engine=engine, alert_sink=alert_sink, mqtt_client=mqtt_client)
        r.start()
        yield r
        r.stop()
        engine.dispose()

    def test_start_survives_schema_failure(self, offline_receiver, paho_client):
        assert offline_receiver.is_running
        assert offline_receiver.schema_ready is False
        paho_client.connect_async.assert_called_once()
        paho_client.loop_start.assert_called_once()

    def test_ready_recovers_once_database_appears(self, settings, offline_receiver, db_dir):
        with TestClient(create_app(settings, receiver=offline_receiver)) as client:
            assert client.get("/ready").status_code == 503

            db_dir.mkdir()

            assert client.get("/ready").status_code == 200
        assert offline_receiver.schema_ready is True
        assert _count(offline_receiver.engine, telemetry) == 0
