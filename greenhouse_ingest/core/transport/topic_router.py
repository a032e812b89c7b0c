"""Clasificación de topics MQTT en (device_id, tipo de mensaje)."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..domain.device import is_valid_device_id

TOPIC_NAMESPACE = "greenhouse"
TOPIC_SEPARATOR = "/"


class MessageKind(str, Enum):
    TELEMETRY = "telemetry"
    STATUS = "status"


@dataclass(frozen=True)
class TopicMatch:
    device_id: str
    kind: MessageKind


def parse_topic(topic: str) -> Optional[TopicMatch]:
    """Parsea `greenhouse/<deviceId>/<kind>`.

    Returns:
        TopicMatch, o None si el topic no tiene exactamente esa forma.
    """
    parts = topic.split(TOPIC_SEPARATOR)
    if len(parts) != 3 or parts[0] != TOPIC_NAMESPACE:
        return None

    _, device_id, kind = parts
    if not is_valid_device_id(device_id):
        return None

    try:
        message_kind = MessageKind(kind)
    except ValueError:
        return None

    return TopicMatch(device_id=device_id, kind=message_kind)


def subscription_topics() -> list[str]:
    """Patrones wildcard que cubren telemetría y estado de todos los dispositivos."""
    return [
        TOPIC_SEPARATOR.join((TOPIC_NAMESPACE, "+", kind.value))
        for kind in MessageKind
    ]
