"""Carga y normalización de variables de configuración basadas en ``.env``."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from dotenv import find_dotenv, load_dotenv

# ---------------------------------------------------------------------------
# Carga automática de archivos ``.env``
# ---------------------------------------------------------------------------
env_loaded_from: str | None = None

env_path = find_dotenv(usecwd=True)
if not env_path:
    repo_root = Path(__file__).resolve().parents[1]
    candidate = repo_root / ".env"
    if candidate.exists():
        env_path = str(candidate)

if env_path:
    load_dotenv(env_path, override=False)
    env_loaded_from = env_path


def _get_any(keys: Iterable[str] | str, default: str) -> str:
    """Devuelve el primer valor no vacío encontrado en ``keys``."""

    if isinstance(keys, (list, tuple, set)):
        for key in keys:
            value = os.getenv(key)
            if value is not None and str(value).strip():
                return value
        return default
    return os.getenv(keys, default)


def getenv(key: str, default: str = "") -> str:
    return _get_any([key], default)


def getint(key: str, default: int) -> int:
    return int(getenv(key, str(default)))


def getfloat(key: str, default: float) -> float:
    return float(getenv(key, str(default)))


def getbool(key: str, default: bool = False) -> bool:
    val = getenv(key, str(default))
    return str(val).strip().lower() in {"1", "true", "yes", "on"}


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


@dataclass(frozen=True)
class BrowserConfig:
    """Configuración del navegador remoto y del Chrome local supervisado."""

    ws_endpoint: str
    max_retries: int
    base_wait_seconds: float
    chrome_path: str
    profile_dir: str
    debug_port: int
    start_url: str
    user_agent: str
    launch_local: bool

    @property
    def local_endpoint(self) -> str:
        """Dirección de depuración del Chrome que lanzamos nosotros."""

        return f"http://127.0.0.1:{self.debug_port}"


BROWSER_WS_ENDPOINT: str = _get_any(["BROWSER_WS_ENDPOINT"], "http://localhost:21222")
LOG_LEVEL: str = _get_any(["LOG_LEVEL"], "INFO").strip().upper()

BROWSER = BrowserConfig(
    ws_endpoint=BROWSER_WS_ENDPOINT,
    max_retries=getint("BROWSER_MAX_RETRIES", 3),
    base_wait_seconds=getfloat("BROWSER_BASE_WAIT_SECONDS", 2.0),
    chrome_path=getenv(
        "CHROME_PATH", r"C:\Program Files\Google\Chrome\Application\chrome.exe"
    ),
    profile_dir=getenv("CHROME_PROFILE_DIR", "chrome-profile"),
    debug_port=getint("CHROME_DEBUG_PORT", 21222),
    start_url=getenv("CHROME_START_URL", "about:blank"),
    user_agent=getenv("CHROME_USER_AGENT", DEFAULT_USER_AGENT),
    launch_local=getbool("BROWSER_LAUNCH_LOCAL", False),
)
