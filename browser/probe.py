"""Consulta del servicio ``/json/version`` expuesto por Chrome en modo depuración."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlparse, urlunparse

import httpx


logger = logging.getLogger(__name__)

PROBE_TIMEOUT_SECONDS = 5.0


@dataclass(frozen=True)
class BrowserVersionInfo:
    """Metadatos devueltos por ``/json/version``. Nunca se reutilizan entre intentos."""

    browser: str
    protocol_version: str
    user_agent: str
    v8_version: str
    webkit_version: str
    web_socket_debugger_url: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "BrowserVersionInfo":
        ws_url = payload.get("webSocketDebuggerUrl")
        return cls(
            browser=str(payload.get("Browser", "")),
            protocol_version=str(payload.get("Protocol-Version", payload.get("ProtocolVersion", ""))),
            user_agent=str(payload.get("User-Agent", payload.get("UserAgent", ""))),
            v8_version=str(payload.get("V8-Version", payload.get("V8Version", ""))),
            webkit_version=str(payload.get("WebKit-Version", payload.get("WebKitVersion", ""))),
            web_socket_debugger_url=str(ws_url) if ws_url else None,
        )


def normalize_endpoint(endpoint: str) -> str:
    """Agrega el esquema ``http://`` si falta y elimina barras finales."""

    endpoint = (endpoint or "").strip()
    parsed = urlparse(endpoint if "://" in endpoint else f"http://{endpoint}")
    path = parsed.path.rstrip("/")
    return urlunparse((parsed.scheme or "http", parsed.netloc, path, "", "", ""))


async def fetch_version_info(
    endpoint: str,
    *,
    client: httpx.AsyncClient | None = None,
    timeout: float = PROBE_TIMEOUT_SECONDS,
) -> BrowserVersionInfo:
    """Descarga y decodifica ``<endpoint>/json/version``.

    Lanza ``httpx.HTTPError`` o ``ValueError`` ante cualquier respuesta inválida;
    :func:`probe_endpoint` es quien convierte esos fallos en "no disponible".
    """

    url = f"{normalize_endpoint(endpoint)}/json/version"
    if client is None:
        async with httpx.AsyncClient(timeout=timeout) as own_client:
            response = await own_client.get(url)
    else:
        response = await client.get(url, timeout=timeout)

    response.raise_for_status()
    payload = response.json()
    if not isinstance(payload, dict):
        raise ValueError(f"Respuesta inesperada de {url}: {payload!r}")

    logger.info("Información del navegador:\n%s", json.dumps(payload, indent=2))
    return BrowserVersionInfo.from_payload(payload)


async def probe_endpoint(
    endpoint: str,
    *,
    client: httpx.AsyncClient | None = None,
    timeout: float = PROBE_TIMEOUT_SECONDS,
) -> Optional[str]:
    """Devuelve la URL ``webSocketDebuggerUrl`` o ``None`` si el navegador no está disponible.

    Nunca lanza excepciones: los reintentos son responsabilidad de quien llama.
    """

    url = f"{normalize_endpoint(endpoint)}/json/version"
    try:
        info = await fetch_version_info(endpoint, client=client, timeout=timeout)
    except httpx.HTTPStatusError as exc:
        logger.error(
            "No se pudo obtener la URL WebSocket desde %s: HTTP %s",
            url,
            exc.response.status_code,
        )
        return None
    except httpx.HTTPError as exc:
        logger.error("No se pudo obtener la URL WebSocket desde %s: %s", url, exc)
        return None
    except httpx.InvalidURL as exc:
        logger.error("Endpoint inválido %s: %s", url, exc)
        return None
    except ValueError as exc:
        # ``json.JSONDecodeError`` también es un ``ValueError``.
        logger.error("Respuesta inválida de %s: %s", url, exc)
        return None
    except Exception as exc:
        # El transporte puede fallar con errores ajenos a httpx (p. ej. un puerto fuera de rango).
        logger.error("Fallo inesperado al consultar %s: %r", url, exc)
        return None

    if not info.web_socket_debugger_url:
        logger.warning("%s no incluye webSocketDebuggerUrl.", url)
        return None
    return info.web_socket_debugger_url


__all__ = [
    "BrowserVersionInfo",
    "PROBE_TIMEOUT_SECONDS",
    "fetch_version_info",
    "normalize_endpoint",
    "probe_endpoint",
]
