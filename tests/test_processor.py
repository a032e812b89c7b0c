"""Tests del pipeline de ingesta de extremo a extremo (sin broker).

MessageHandler → IngestProcessor → SQLite, con `submit` síncrono.
"""

from unittest.mock import MagicMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from greenhouse_ingest.core.alerts import AlertSink
from greenhouse_ingest.core.monitoring import Stats
from greenhouse_ingest.core.persistence import DeviceRegistry, StatusStore, TelemetryStore
from greenhouse_ingest.core.persistence.schema import device_status, devices, telemetry
from greenhouse_ingest.core.pipeline import IngestProcessor, StatusJob, TelemetryJob
from greenhouse_ingest.core.transport import MessageHandler
from greenhouse_ingest.core.validation import TelemetryPayload


def _count(engine, table) -> int:
    with engine.connect() as conn:
        return conn.execute(select(func.count()).select_from(table)).scalar_one()


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def alert_sink() -> MagicMock:
    return MagicMock(spec=AlertSink)


@pytest.fixture
def stats() -> Stats:
    return Stats()


@pytest.fixture
def processor(engine, clock, alert_sink, stats) -> IngestProcessor:
    return IngestProcessor(
        registry=DeviceRegistry(engine),
        telemetry_store=TelemetryStore(engine, clock=clock),
        status_store=StatusStore(engine, clock=clock),
        alert_sink=alert_sink,
        stats=stats,
    )


@pytest.fixture
def handler(processor, stats) -> MessageHandler:
    return MessageHandler(processor.process, stats)


# =============================================================================
# TELEMETRÍA
# =============================================================================

class TestTelemetryPipeline:

    def test_valid_reading_stored(self, handler, engine, telemetry_data, encode, alert_sink, stats):
        handler.handle("greenhouse/ESP32_001/telemetry", encode(telemetry_data))

        assert _count(engine, telemetry) == 1
        assert _count(engine, devices) == 1
        alert_sink.on_alert.assert_not_called()
        assert stats.processed == 1
        assert stats.rejected == 0

    def test_device_mismatch_writes_nothing(self, handler, engine, telemetry_data, encode, stats):
        handler.handle("greenhouse/ESP32_002/telemetry", encode(telemetry_data))

        assert _count(engine, telemetry) == 0
        assert _count(engine, devices) == 0
        assert stats.rejected == 1

    @pytest.mark.parametrize("field,value", [("airHumidity", 101), ("soilMoisture", -5)])
    def test_out_of_range_writes_nothing(self, handler, engine, telemetry_data, encode, field, value):
        telemetry_data[field] = value
        handler.handle("greenhouse/ESP32_001/telemetry", encode(telemetry_data))

        assert _count(engine, telemetry) == 0

    def test_non_ascii_device_id_writes_nothing(self, handler, engine, telemetry_data, encode, stats):
        device_id = "ESP32_١٢٣"
        telemetry_data["deviceId"] = device_id

        handler.handle(f"greenhouse/{device_id}/telemetry", encode(telemetry_data))
        handler.handle(f"greenhouse/{device_id}/status", b"online")

        assert _count(engine, devices) == 0
        assert _count(engine, telemetry) == 0
        assert stats.rejected == 2

    def test_malformed_payload_is_dropped(self, handler, engine, stats):
        handler.handle("greenhouse/ESP32_001/telemetry", b"not json")

        assert _count(engine, telemetry) == 0
        assert stats.received == 1
        assert stats.rejected == 1

    def test_unknown_topic_ignored(self, engine, stats):
        submit = MagicMock(return_value=True)
        handler = MessageHandler(submit, stats)

        handler.handle("foo/bar", b'{"status": "online"}')

        submit.assert_not_called()
        assert _count(engine, devices) == 0
        assert stats.rejected == 1

    def test_alert_handed_to_sink(self, handler, telemetry_data, encode, alert_sink, stats):
        telemetry_data["airTemperature"] = 36
        handler.handle("greenhouse/ESP32_001/telemetry", encode(telemetry_data))

        alert_sink.on_alert.assert_called_once_with(
            "ESP32_001",
            ["Air temperature is above maximum: 36°C (max 35°C)"],
        )
        assert stats.alerts == 1

    def test_sink_failure_keeps_reading(self, handler, engine, telemetry_data, encode, alert_sink):
        alert_sink.on_alert.side_effect = RuntimeError("sink down")
        telemetry_data["lightLevel"] = 10

        handler.handle("greenhouse/ESP32_001/telemetry", encode(telemetry_data))

        assert _count(engine, telemetry) == 1

    def test_storage_failure_is_not_raised(self, engine, stats, telemetry_data):
        store = MagicMock(spec=TelemetryStore)
        store.insert.side_effect = OperationalError("INSERT", {}, Exception("db down"))
        processor = IngestProcessor(
            registry=DeviceRegistry(engine),
            telemetry_store=store,
            status_store=StatusStore(engine),
            stats=stats,
        )
        job = TelemetryJob(payload=TelemetryPayload.model_validate(telemetry_data))

        assert processor.process(job) is False
        assert stats.failed == 1


# =============================================================================
# ESTADO
# =============================================================================

class TestStatusPipeline:

    def test_online_then_offline(self, handler, engine):
        handler.handle("greenhouse/ESP32_001/status", b'{"status": "online"}')
        handler.handle("greenhouse/ESP32_001/status", b"offline")

        with engine.connect() as conn:
            rows = conn.execute(select(device_status)).fetchall()
        assert len(rows) == 1
        assert rows[0].status == "offline"

    def test_status_provisions_device(self, handler, engine):
        handler.handle("greenhouse/ESP32_005/status", b"online")
        assert _count(engine, devices) == 1

    def test_empty_status_rejected(self, handler, engine, stats):
        handler.handle("greenhouse/ESP32_001/status", b"   ")

        assert _count(engine, device_status) == 0
        assert stats.rejected == 1

    def test_long_free_form_status_stored(self, handler, engine):
        token = "calibrating_sensors_" + "x" * 300
        handler.handle("greenhouse/ESP32_001/status", token.encode())

        with engine.connect() as conn:
            assert conn.execute(select(device_status.c.status)).scalar_one() == token

    def test_unstructured_object_stored_as_text(self, handler, engine):
        handler.handle("greenhouse/ESP32_001/status", b'{"state": "online"}')

        with engine.connect() as conn:
            assert conn.execute(select(device_status.c.status)).scalar_one() == '{"state": "online"}'

    def test_unsupported_job(self, processor):
        with pytest.raises(TypeError):
            processor.process(object())

    def test_status_job(self, processor, engine):
        assert processor.process(StatusJob(device_id="ESP32_001", status="online")) is True
        assert _count(engine, device_status) == 1


# =============================================================================
# HANDLER
# =============================================================================

class TestMessageHandler:

    def test_closed_handler_drops(self, stats):
        submit = MagicMock(return_value=True)
        handler = MessageHandler(submit, stats)
        handler.close()

        handler.handle("greenhouse/ESP32_001/status", b"online")

        submit.assert_not_called()
        assert not handler.is_accepting
        assert stats.dropped == 1

    def test_full_queue_counts_dropped(self, stats):
        handler = MessageHandler(MagicMock(return_value=False), stats)
        handler.handle("greenhouse/ESP32_001/status", b"online")
        assert stats.dropped == 1

    def test_submit_error_never_raises(self, stats):
        handler = MessageHandler(MagicMock(side_effect=RuntimeError("boom")), stats)
        handler.handle("greenhouse/ESP32_001/status", b"online")
        assert stats.failed == 1
