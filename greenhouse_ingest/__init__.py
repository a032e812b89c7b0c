"""Servicio de ingesta MQTT para dispositivos de invernadero.

Estructura:
- config.py / db.py → configuración y engine de BD
- core/             → transporte MQTT, validación, persistencia, alertas
- queries/          → lecturas expuestas a otros componentes
- endpoints/        → superficie HTTP de operación (health, métricas)
"""

__version__ = "0.1.0"
