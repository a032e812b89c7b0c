"""CLI entry point: ejecuta el receptor sin servidor HTTP."""

from __future__ import annotations

import argparse
import logging
import signal
import threading

from .config import configure_logging, get_settings
from .core.persistence.schema import ensure_schema
from .core.receiver import IngestReceiver
from .db import create_db_engine

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> None:
    p = argparse.ArgumentParser(description="Greenhouse MQTT ingestion receiver")
    p.add_argument("--init-schema", action="store_true", help="create tables and exit")
    p.add_argument("--log-level", default=None, help="override LOG_LEVEL")
    args = p.parse_args(argv)

    settings = get_settings()
    configure_logging(args.log_level.upper() if args.log_level else settings.log_level)

    if args.init_schema:
        engine = create_db_engine(settings)
        try:
            ensure_schema(engine)
        finally:
            engine.dispose()
        return

    stop_event = threading.Event()

    def _shutdown(signum, _frame):
        logger.info("Signal %s received, shutting down", signal.Signals(signum).name)
        stop_event.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    receiver = IngestReceiver(settings)
    receiver.start()
    logger.info("Greenhouse ingest receiver running (Ctrl+C to stop)")
    try:
        stop_event.wait()
    finally:
        receiver.stop()


if __name__ == "__main__":
    main()
