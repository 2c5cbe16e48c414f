"""Conexión a Chrome vía CDP con reintentos y, opcionalmente, lanzamiento local.

Estados de :class:`ConnectionManager`::

    IDLE -> PROBING -> CONNECTED
                    -> PROBING (reintento)
                    -> FAILED
    CONNECTED -> DISCONNECTED
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, Optional

from playwright.async_api import Browser, Page, Playwright, async_playwright

from settings import BROWSER, BrowserConfig

from .errors import ConnectFailedError, LaunchTimeoutError, RetriesExhaustedError
from .probe import normalize_endpoint, probe_endpoint
from .process import ProcessSupervisor


logger = logging.getLogger(__name__)

LOCAL_PROBE_ATTEMPTS = 30
LOCAL_PROBE_INTERVAL = 1.0


@dataclass
class BrowserConnection:
    """Agrupa el navegador conectado y el objeto de Playwright para su limpieza."""

    browser: Browser
    playwright: Optional[Playwright] = None
    endpoint: str = ""

    def pages(self) -> list[Page]:
        """Pestañas de todos los contextos, en el orden que informa Chrome."""

        return [page for context in self.browser.contexts for page in context.pages]

    def is_connected(self) -> bool:
        return self.browser.is_connected()

    async def close(self) -> None:
        """Cierra la sesión CDP sin finalizar Chrome y detiene Playwright."""

        try:
            # Con ``connect_over_cdp`` esto sólo desconecta; Chrome sigue abierto.
            await self.browser.close()
        finally:
            if self.playwright is not None:
                await self.playwright.stop()


Probe = Callable[[str], Awaitable[Optional[str]]]
Connector = Callable[[str], Awaitable[BrowserConnection]]
Sleep = Callable[[float], Awaitable[None]]


async def connect_browser_over_cdp(endpoint: str) -> BrowserConnection:
    """Abre una sesión CDP contra un Chrome ya abierto."""

    pw = await async_playwright().start()
    try:
        browser = await pw.chromium.connect_over_cdp(endpoint)
    except Exception:
        try:
            await pw.stop()
        except Exception as stop_error:
            logger.warning("Advertencia al detener Playwright tras un error: %s", stop_error)
        raise
    return BrowserConnection(browser=browser, playwright=pw, endpoint=endpoint)


@dataclass(frozen=True)
class RetryPolicy:
    """Número de intentos y espera lineal (``intento * base_wait``)."""

    max_attempts: int = BROWSER.max_retries
    base_wait: float = BROWSER.base_wait_seconds

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts debe ser al menos 1")
        if self.base_wait <= 0:
            raise ValueError("base_wait debe ser positivo")

    def wait_for(self, attempt: int) -> float:
        return attempt * self.base_wait


class ConnectionState(Enum):
    IDLE = "idle"
    PROBING = "probing"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    FAILED = "failed"


class ConnectionManager:
    """Mantiene a lo sumo una conexión viva con Chrome.

    Cada llamada a :meth:`connect` es independiente: no se conserva estado de
    reintentos tras un fallo. No es seguro llamar a ``connect`` concurrentemente
    sobre la misma instancia.
    """

    def __init__(
        self,
        endpoint: str | None = None,
        *,
        policy: RetryPolicy | None = None,
        config: BrowserConfig = BROWSER,
        probe: Probe = probe_endpoint,
        connector: Connector = connect_browser_over_cdp,
        supervisor: ProcessSupervisor | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.config = config
        self.policy = policy or RetryPolicy(config.max_retries, config.base_wait_seconds)
        self._endpoint = normalize_endpoint(endpoint or config.ws_endpoint)
        self._probe = probe
        self._connector = connector
        self._supervisor = supervisor
        self._sleep = sleep
        self.state = ConnectionState.IDLE
        self.connection: Optional[BrowserConnection] = None

    @property
    def endpoint(self) -> str:
        return self._endpoint

    def set_endpoint(self, endpoint: str) -> None:
        """Cambia el endpoint para los próximos intentos de conexión."""

        self._endpoint = normalize_endpoint(endpoint)

    @property
    def supervisor(self) -> ProcessSupervisor:
        if self._supervisor is None:
            self._supervisor = ProcessSupervisor(self.config)
        return self._supervisor

    async def connect(self, retries: int | None = None) -> BrowserConnection:
        """Sondea el endpoint y abre la sesión CDP, reintentando con espera lineal."""

        attempts = retries if retries is not None else self.policy.max_attempts
        if attempts < 1:
            raise ValueError("retries debe ser al menos 1")
        endpoint = self._endpoint

        for attempt in range(1, attempts + 1):
            self.state = ConnectionState.PROBING
            logger.info("Intento %d: comprobando el navegador en %s...", attempt, endpoint)
            ws_url = await self._probe(endpoint)

            if not ws_url:
                if attempt == attempts:
                    break
                wait = self.policy.wait_for(attempt)
                logger.warning(
                    "Intento %d: el navegador no responde. Reintentando en %.1f segundos...",
                    attempt,
                    wait,
                )
                await self._sleep(wait)
                continue

            try:
                logger.info("Intento %d: conectando al navegador en %s...", attempt, endpoint)
                connection = await self._connector(endpoint)
            except Exception as exc:
                failure = ConnectFailedError(attempt, exc)
                logger.error("%s", failure)
                if attempt == attempts:
                    self.state = ConnectionState.FAILED
                    raise RetriesExhaustedError(
                        "No se pudo conectar al navegador tras varios intentos.", attempts
                    ) from failure
                wait = self.policy.wait_for(attempt)
                logger.info("Intento %d: reintentando en %.1f segundos...", attempt, wait)
                await self._sleep(wait)
                continue

            await self._replace_connection(connection)
            self.state = ConnectionState.CONNECTED
            logger.info("Conectado al navegador en %s.", endpoint)
            return connection

        self.state = ConnectionState.FAILED
        logger.error("El navegador en %s no respondió en %d intentos.", endpoint, attempts)
        raise RetriesExhaustedError(
            "No se pudo conectar al navegador después de agotar los reintentos.", attempts
        )

    async def launch_and_connect_local(
        self, profile_directory: str | Path | None = None
    ) -> BrowserConnection:
        """Lanza Chrome localmente, espera su endpoint y se conecta."""

        await self.supervisor.launch(profile_directory or self.config.profile_dir)

        local_endpoint = self.config.local_endpoint
        for attempt in range(1, LOCAL_PROBE_ATTEMPTS + 1):
            if await self._probe(local_endpoint):
                logger.info("Chrome local disponible tras %d comprobación(es).", attempt)
                self.set_endpoint(local_endpoint)
                return await self.connect()
            if attempt < LOCAL_PROBE_ATTEMPTS:
                await self._sleep(LOCAL_PROBE_INTERVAL)

        self.state = ConnectionState.FAILED
        error = LaunchTimeoutError(local_endpoint, LOCAL_PROBE_ATTEMPTS)
        logger.error("%s", error)
        raise error

    async def connect_or_launch(
        self,
        profile_directory: str | Path | None = None,
        *,
        launch_local: bool | None = None,
    ) -> BrowserConnection:
        """Se conecta al endpoint configurado y, si se permite, recurre a un Chrome local."""

        allow_launch = self.config.launch_local if launch_local is None else launch_local
        try:
            return await self.connect()
        except RetriesExhaustedError:
            if not allow_launch:
                raise
            logger.warning("Endpoint %s inaccesible; lanzando Chrome local.", self._endpoint)
        return await self.launch_and_connect_local(profile_directory)

    async def disconnect(self, connection: BrowserConnection | None = None) -> None:
        """Libera la sesión CDP. Los errores se registran y nunca se propagan."""

        target = connection or self.connection
        if target is None:
            return
        try:
            await target.close()
        except Exception as exc:
            logger.warning("Advertencia al desconectar el navegador: %s", exc)
        if target is self.connection:
            self.connection = None
            self.state = ConnectionState.DISCONNECTED

    async def _replace_connection(self, connection: BrowserConnection) -> None:
        previous = self.connection
        self.connection = connection
        if previous is not None and previous is not connection:
            await self.disconnect(previous)


__all__ = [
    "BrowserConnection",
    "ConnectionManager",
    "ConnectionState",
    "LOCAL_PROBE_ATTEMPTS",
    "LOCAL_PROBE_INTERVAL",
    "RetryPolicy",
    "connect_browser_over_cdp",
]
