"""Accesos directos a la configuración de la aplicación."""

from .settings import (
    BROWSER,
    BROWSER_WS_ENDPOINT,
    LOG_LEVEL,
    BrowserConfig,
    env_loaded_from,
    getbool,
    getenv,
    getfloat,
    getint,
)

__all__ = [
    "BROWSER",
    "BROWSER_WS_ENDPOINT",
    "LOG_LEVEL",
    "BrowserConfig",
    "env_loaded_from",
    "getbool",
    "getenv",
    "getfloat",
    "getint",
]
