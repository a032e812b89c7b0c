from __future__ import annotations

import logging

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url

from .config import Settings

logger = logging.getLogger(__name__)


def create_db_engine(settings: Settings) -> Engine:
    """Crea el engine con pool acotado compartido por todo el proceso.

    El pool es el único recurso de BD: si se agota, `pool_timeout` hace que
    la operación afectada falle con `sqlalchemy.exc.TimeoutError` en vez de
    bloquear indefinidamente.
    """
    url = make_url(settings.database_url)

    # Log básico de parámetros de conexión (sin contraseña)
    logger.info(
        "[DB] Creating engine driver=%s host=%s port=%s db=%s pool_size=%d max_overflow=%d",
        url.drivername,
        url.host,
        url.port,
        url.database,
        settings.db_pool_size,
        settings.db_max_overflow,
    )

    return create_engine(
        url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        pool_pre_ping=True,
        pool_recycle=300,
    )


def check_connection(engine: Engine) -> bool:
    """`SELECT 1` contra el engine. Nunca lanza."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception:
        logger.exception("[DB] Connection check failed")
        return False
