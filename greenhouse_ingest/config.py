from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import quote_plus

from dotenv import load_dotenv


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_optional(name: str) -> Optional[str]:
    # Variables vacías en el .env cuentan como no configuradas.
    value = os.getenv(name)
    return value or None


@dataclass(frozen=True)
class Settings:
    database_url: str
    db_pool_size: int
    db_max_overflow: int
    db_pool_timeout: float
    db_auto_migrate: bool

    mqtt_host: str
    mqtt_port: int
    mqtt_username: Optional[str]
    mqtt_password: Optional[str]
    mqtt_client_id_prefix: str
    mqtt_keepalive: int
    mqtt_reconnect_seconds: float
    mqtt_qos: int

    ingest_queue_size: int
    ingest_num_workers: int
    sentinel_owner_id: int

    alert_webhook_url: Optional[str]
    internal_api_key: Optional[str]
    ingest_api_key: Optional[str]

    log_level: str


def _database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url

    db_host = os.getenv("DB_HOST", "localhost")
    db_port = os.getenv("DB_PORT", "5432")
    db_user = os.getenv("DB_USER", "greenhouse")
    db_password = os.getenv("DB_PASSWORD", "")
    db_name = os.getenv("DB_NAME", "greenhouse")
    return (
        f"postgresql+psycopg2://{quote_plus(db_user)}:{quote_plus(db_password)}"
        f"@{db_host}:{db_port}/{db_name}"
    )


def get_settings() -> Settings:
    # Carga el env file (si existe) sin pisar variables reales del entorno.
    env_file = os.getenv("GREENHOUSE_ENV_FILE", ".env")
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    return Settings(
        database_url=_database_url(),
        db_pool_size=int(os.getenv("DB_POOL_SIZE", "5")),
        db_max_overflow=int(os.getenv("DB_MAX_OVERFLOW", "10")),
        db_pool_timeout=float(os.getenv("DB_POOL_TIMEOUT", "30")),
        db_auto_migrate=_env_bool("DB_AUTO_MIGRATE", True),
        mqtt_host=os.getenv("MQTT_BROKER_HOST", "localhost"),
        mqtt_port=int(os.getenv("MQTT_BROKER_PORT", "1883")),
        mqtt_username=_env_optional("MQTT_USERNAME"),
        mqtt_password=_env_optional("MQTT_PASSWORD"),
        mqtt_client_id_prefix=os.getenv("MQTT_CLIENT_ID_PREFIX", "greenhouse-ingest"),
        mqtt_keepalive=int(os.getenv("MQTT_KEEPALIVE", "60")),
        mqtt_reconnect_seconds=float(os.getenv("MQTT_RECONNECT_SECONDS", "3")),
        mqtt_qos=int(os.getenv("MQTT_QOS", "1")),
        ingest_queue_size=int(os.getenv("INGEST_QUEUE_SIZE", "1000")),
        ingest_num_workers=int(os.getenv("INGEST_NUM_WORKERS", "4")),
        sentinel_owner_id=int(os.getenv("SENTINEL_OWNER_ID", "1")),
        alert_webhook_url=_env_optional("ALERT_WEBHOOK_URL"),
        internal_api_key=_env_optional("INTERNAL_API_KEY"),
        ingest_api_key=_env_optional("INGEST_API_KEY"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )
