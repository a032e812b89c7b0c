"""Esquema de BD de la ingesta.

Tablas:
- devices       → un registro por dispositivo (auto-provisionado)
- telemetry     → lecturas, solo INSERT
- device_status → último estado por dispositivo (upsert)
- alert_rules   → umbrales por dispositivo (solo lectura para la ingesta)

Funciona sobre PostgreSQL (producción) y SQLite (tests).
"""

from __future__ import annotations

import logging

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    func,
)
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Connection, Engine

logger = logging.getLogger(__name__)

metadata = MetaData()

devices = Table(
    "devices",
    metadata,
    Column("device_id", String(64), primary_key=True),
    Column("user_id", Integer, nullable=False, index=True),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)

telemetry = Table(
    "telemetry",
    metadata,
    Column("id", BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True),
    Column(
        "device_id",
        String(64),
        ForeignKey("devices.device_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("air_temperature", Float, nullable=False),
    Column("air_humidity", Float, nullable=False),
    Column("soil_temperature", Float, nullable=False),
    Column("soil_moisture", Float, nullable=False),
    Column("light_level", Float, nullable=False),
    Column("recorded_at", DateTime(timezone=True), nullable=False),
    CheckConstraint("air_humidity BETWEEN 0 AND 100", name="telemetry_air_humidity_range"),
    CheckConstraint("soil_moisture BETWEEN 0 AND 100", name="telemetry_soil_moisture_range"),
    Index("telemetry_device_time_idx", "device_id", "recorded_at"),
)

device_status = Table(
    "device_status",
    metadata,
    Column(
        "device_id",
        String(64),
        ForeignKey("devices.device_id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("status", Text, nullable=False),
    Column("reported_at", DateTime(timezone=True), nullable=False, index=True),
)

alert_rules = Table(
    "alert_rules",
    metadata,
    Column(
        "device_id",
        String(64),
        ForeignKey("devices.device_id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("air_temperature_min", Float),
    Column("air_temperature_max", Float),
    Column("air_humidity_min", Float),
    Column("air_humidity_max", Float),
    Column("soil_temperature_min", Float),
    Column("soil_temperature_max", Float),
    Column("soil_moisture_min", Float),
    Column("soil_moisture_max", Float),
    Column("light_level_min", Float),
    Column("light_level_max", Float),
)


def ensure_schema(engine: Engine) -> None:
    """Crea las tablas si no existen. Seguro de llamar varias veces."""
    logger.info("[DB] Ensuring schema exists")
    metadata.create_all(engine)
    logger.info("[DB] Schema ready")


def upsert_insert(conn: Connection, table: Table):
    """INSERT con soporte ON CONFLICT para el dialecto de la conexión."""
    dialect = conn.dialect.name
    if dialect == "postgresql":
        return postgresql.insert(table)
    if dialect == "sqlite":
        return sqlite.insert(table)
    raise NotImplementedError(f"ON CONFLICT not supported for dialect {dialect}")
