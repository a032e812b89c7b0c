"""Canales de entrega de alertas.

La ingesta solo decide que una alerta se disparó; la entrega (push, email)
la hace otro servicio. Estos sinks son el punto de traspaso.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import requests

logger = logging.getLogger(__name__)


class AlertSink:
    """Interfaz de traspaso de alertas."""

    def on_alert(self, device_id: str, messages: Sequence[str]) -> None:
        raise NotImplementedError


class LoggingAlertSink(AlertSink):
    """Sink por defecto: solo registra la alerta en el log."""

    def on_alert(self, device_id: str, messages: Sequence[str]) -> None:
        for message in messages:
            logger.warning("[ALERT] device=%s %s", device_id, message)


class HttpAlertSink(AlertSink):
    """Envía las alertas al backend de notificaciones vía HTTP.

    No bloquea la ingesta si falla - solo loguea el error.
    """

    def __init__(
        self,
        url: str,
        internal_key: Optional[str] = None,
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
    ):
        self._url = url
        self._internal_key = internal_key
        self._timeout = timeout
        self._session = session or requests.Session()

    def on_alert(self, device_id: str, messages: Sequence[str]) -> None:
        headers = {"Content-Type": "application/json"}
        if self._internal_key:
            headers["X-Internal-Key"] = self._internal_key

        try:
            response = self._session.post(
                self._url,
                json={"deviceId": device_id, "messages": list(messages)},
                headers=headers,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            logger.error("[ALERT] Delivery to %s failed device=%s: %s", self._url, device_id, e)
            return

        if response.ok:
            logger.info("[ALERT] Delivered device=%s count=%d", device_id, len(messages))
        else:
            logger.warning(
                "[ALERT] Delivery rejected device=%s status=%s body=%s",
                device_id,
                response.status_code,
                response.text[:200],
            )


def build_alert_sink(webhook_url: Optional[str], internal_key: Optional[str]) -> AlertSink:
    if webhook_url:
        return HttpAlertSink(webhook_url, internal_key=internal_key)
    logger.info("[ALERT] ALERT_WEBHOOK_URL not configured - alerts only logged")
    return LoggingAlertSink()
