"""Transport layer - Recepción de datos MQTT."""

from .message_handler import MessageHandler
from .mqtt_client import MQTTClient
from .topic_router import MessageKind, TopicMatch, parse_topic, subscription_topics

__all__ = [
    "MessageHandler",
    "MQTTClient",
    "MessageKind",
    "TopicMatch",
    "parse_topic",
    "subscription_topics",
]
