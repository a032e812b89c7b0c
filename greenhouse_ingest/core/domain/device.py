"""Identificadores de dispositivo."""

from __future__ import annotations

import re

# Formato del firmware: ESP32_ + tres dígitos ASCII.
DEVICE_ID_PATTERN = r"^ESP32_[0-9]{3}$"
DEVICE_ID_REGEX = re.compile(DEVICE_ID_PATTERN)


def is_valid_device_id(device_id: str) -> bool:
    # fullmatch: `$` aceptaría un salto de línea final.
    return DEVICE_ID_REGEX.fullmatch(device_id) is not None
