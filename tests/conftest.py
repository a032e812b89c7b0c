"""Fixtures compartidas.

Las pruebas de persistencia usan SQLite en un archivo temporal: el esquema
y los upserts son los mismos que en PostgreSQL.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict
from unittest.mock import MagicMock

import orjson
import paho.mqtt.client as mqtt
import pytest
from sqlalchemy import create_engine

from greenhouse_ingest.config import Settings
from greenhouse_ingest.core.persistence.schema import ensure_schema


class FakeClock:
    """Reloj controlable: avanza `step` en cada llamada."""

    def __init__(self, start: datetime, step: timedelta = timedelta(seconds=1)):
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + self.step
        return value


@pytest.fixture
def engine(tmp_path):
    """Engine SQLite con el esquema creado."""
    db_engine = create_engine(
        f"sqlite:///{tmp_path / 'greenhouse.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    ensure_schema(db_engine)
    yield db_engine
    db_engine.dispose()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'greenhouse.db'}",
        db_pool_size=5,
        db_max_overflow=10,
        db_pool_timeout=30.0,
        db_auto_migrate=True,
        mqtt_host="broker.test",
        mqtt_port=1883,
        mqtt_username=None,
        mqtt_password=None,
        mqtt_client_id_prefix="greenhouse-test",
        mqtt_keepalive=60,
        mqtt_reconnect_seconds=3.0,
        mqtt_qos=1,
        ingest_queue_size=100,
        ingest_num_workers=2,
        sentinel_owner_id=1,
        alert_webhook_url=None,
        internal_api_key=None,
        ingest_api_key=None,
        log_level="DEBUG",
    )


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 10, 17, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(fixed_now) -> FakeClock:
    return FakeClock(fixed_now)


@pytest.fixture
def telemetry_data() -> Dict[str, Any]:
    """Payload de telemetría válido (sin alertas con las reglas por defecto)."""
    return {
        "deviceId": "ESP32_001",
        "airTemperature": 24.5,
        "airHumidity": 61.0,
        "soilTemperature": 19.2,
        "soilMoisture": 48.0,
        "lightLevel": 830,
    }


@pytest.fixture
def encode():
    """Serializa un dict a bytes JSON como lo publicaría el dispositivo."""
    return orjson.dumps


@pytest.fixture
def paho_client() -> MagicMock:
    """Cliente paho simulado: no abre sockets."""
    client = MagicMock()
    client.subscribe.return_value = (mqtt.MQTT_ERR_SUCCESS, 1)
    return client
