"""Aplicación FastAPI: arranca el receptor MQTT y expone health/métricas.

Ejecutar:
    uvicorn greenhouse_ingest.main:app --port 8001
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from . import __version__
from .config import Settings, configure_logging, get_settings
from .core.receiver import IngestReceiver
from .endpoints import devices_router, health_router

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    receiver: Optional[IngestReceiver] = None,
) -> FastAPI:
    """Crea la app.

    Si se pasa `receiver`, la app no lo arranca ni lo detiene: su ciclo de
    vida es del llamador.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cfg = app.state.settings
        configure_logging(cfg.log_level)
        owns_receiver = app.state.receiver is None
        if owns_receiver:
            app.state.receiver = IngestReceiver(cfg)
            app.state.receiver.start()
        try:
            yield
        finally:
            if owns_receiver:
                app.state.receiver.stop()

    app = FastAPI(title="Greenhouse Ingest Service", version=__version__, lifespan=lifespan)
    app.state.settings = settings or get_settings()
    app.state.receiver = receiver
    app.include_router(health_router)
    app.include_router(devices_router)
    return app


app = create_app()
