"""Tiempos y reintentos por defecto de las interacciones con la página."""

from __future__ import annotations

CLICK_DELAY_MS = 2_000
TEXT_POLL_DELAY_MS = 8_000
ELEMENT_TEXT_MAX_RETRIES = 100
BODY_TEXT_MAX_ATTEMPTS = 50

TEXT_CONTAINER_SELECTOR = "div"
FILE_INPUT_SELECTOR = "input[type='file']"
