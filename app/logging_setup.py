"""Configuración básica de ``logging`` para los scripts de automatización."""

from __future__ import annotations

import logging

from settings import LOG_LEVEL

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_configured = False


def setup_logging(level: str | int | None = None) -> None:
    """Instala un handler en el logger raíz una sola vez."""

    global _configured
    resolved = level if level is not None else LOG_LEVEL
    if isinstance(resolved, str):
        resolved = logging.getLevelName(resolved.upper())
        if not isinstance(resolved, int):
            resolved = logging.INFO

    root = logging.getLogger()
    if not _configured:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        _configured = True
    root.setLevel(resolved)


__all__ = ["LOG_FORMAT", "setup_logging"]
