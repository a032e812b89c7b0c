"""Core module - Arquitectura modular de ingesta.

Estructura:
- transport/   → Conexión MQTT, clasificación de topics, handler
- validation/  → Decodificación de payloads
- domain/      → Modelos de dominio (lecturas, estado, reglas, liveness)
- persistence/ → Acceso a BD
- pipeline/    → Procesamiento de trabajos validados
- alerts/      → Evaluación de reglas y traspaso de alertas
- monitoring/  → Stats, métricas y health
"""
