"""Lanzamiento y supervisión del proceso local de Chrome (sólo Windows).

El proceso se inicia desacoplado del intérprete, pero el supervisor registra
ganchos de salida (``atexit``, ``SIGINT``, ``SIGTERM``) que intentan matarlo
antes de que el proceso anfitrión termine.

Limitación conocida: ``launch`` no serializa llamadas concurrentes. Dos
lanzamientos simultáneos pueden dejar dos Chrome abiertos.
"""

from __future__ import annotations

import asyncio
import atexit
import logging
import signal
import subprocess
import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional

import psutil

from settings import BROWSER, BrowserConfig

from .errors import UnsupportedPlatformError, WaitCancelledError


logger = logging.getLogger(__name__)

SUPPORTED_PLATFORM = "win32"
CHROME_PROCESS_NAME = "chrome.exe"
TERMINATE_POLL_INTERVAL = 0.5

_DETACHED_FLAGS = getattr(subprocess, "DETACHED_PROCESS", 0) | getattr(
    subprocess, "CREATE_NEW_PROCESS_GROUP", 0
)


class ProcessState(Enum):
    """Ciclo de vida de un proceso lanzado por el supervisor."""

    SPAWNED = "spawned"
    RUNNING = "running"
    EXITED = "exited"
    FAILED = "failed"


@dataclass
class SupervisedProcess:
    """Registro del proceso de Chrome que lanzamos."""

    args: list[str]
    state: ProcessState = ProcessState.SPAWNED
    pid: Optional[int] = None
    error: Optional[BaseException] = None
    popen: Optional[subprocess.Popen] = field(default=None, repr=False)

    def refresh(self) -> ProcessState:
        """Actualiza ``state`` según ``Popen.poll()``."""

        if self.popen is not None and self.state in (ProcessState.SPAWNED, ProcessState.RUNNING):
            self.state = ProcessState.RUNNING if self.popen.poll() is None else ProcessState.EXITED
        return self.state

    def kill(self) -> None:
        """Mata el proceso si sigue vivo. Nunca lanza excepciones."""

        if self.popen is None or self.refresh() is not ProcessState.RUNNING:
            return
        try:
            self.popen.kill()
        except OSError as exc:
            logger.warning("No se pudo matar Chrome (pid %s): %s", self.pid, exc)
            return
        self.state = ProcessState.EXITED
        logger.info("Chrome (pid %s) finalizado.", self.pid)


ErrorCallback = Callable[[SupervisedProcess, BaseException], Any]


def _log_launch_error(process: SupervisedProcess, error: BaseException) -> None:
    logger.error("Error al lanzar Chrome (%s): %s", process.args[0], error)


def build_launch_args(profile_directory: str | Path, config: BrowserConfig = BROWSER) -> list[str]:
    """Arma la línea de comandos de Chrome con un perfil aislado."""

    profile = Path(profile_directory)
    if not profile.is_absolute():
        profile = Path.cwd() / profile

    return [
        config.chrome_path,
        f"--remote-debugging-port={config.debug_port}",
        f"--user-data-dir={profile}",
        "--no-sandbox",
        "--disable-software-rasterizer",
        "--no-first-run",
        "--no-default-browser-check",
        "--disable-background-networking",
        "--disable-breakpad",
        "--disable-component-update",
        "--disable-domain-reliability",
        "--disable-sync",
        "--metrics-recording-only",
        "--disable-features=Translate,OptimizationHints,MediaRouter",
        f"--user-agent={config.user_agent}",
        config.start_url,
    ]


class ProcessSupervisor:
    """Lanza, registra y finaliza procesos locales de Chrome."""

    def __init__(
        self,
        config: BrowserConfig = BROWSER,
        *,
        process_name: str = CHROME_PROCESS_NAME,
        platform: str | None = None,
    ) -> None:
        self.config = config
        self.process_name = process_name
        self.platform = platform or sys.platform
        self.processes: list[SupervisedProcess] = []
        self._hooks_installed = False
        self._previous_handlers: dict[int, Any] = {}

    # -- contexto ---------------------------------------------------------
    async def __aenter__(self) -> "ProcessSupervisor":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        """Mata los procesos lanzados y retira los ganchos de salida."""

        self.kill_spawned()
        self._uninstall_exit_hooks()

    # -- consultas --------------------------------------------------------
    def ensure_supported(self) -> None:
        if self.platform != SUPPORTED_PLATFORM:
            raise UnsupportedPlatformError(self.platform)

    def is_any_instance_running(self) -> bool:
        """True si existe algún proceso con el nombre canónico.

        Si la tabla de procesos no se puede leer se asume que no hay ninguno.
        """

        target = self.process_name.lower()
        try:
            for proc in psutil.process_iter(["name"]):
                name = (proc.info.get("name") or "").lower()
                if name == target:
                    return True
        except (psutil.Error, OSError) as exc:
            logger.warning("No se pudo consultar la lista de procesos: %s", exc)
        return False

    # -- ciclo de vida ----------------------------------------------------
    async def launch(
        self,
        profile_directory: str | Path | None = None,
        *,
        on_error: ErrorCallback | None = None,
    ) -> SupervisedProcess:
        """Inicia Chrome con el puerto de depuración fijo.

        Los errores del arranque no se lanzan: se notifican a ``on_error`` en la
        siguiente vuelta del loop y quedan registrados en el proceso devuelto.
        """

        self.ensure_supported()

        args = build_launch_args(profile_directory or self.config.profile_dir, self.config)
        record = SupervisedProcess(args=args)
        logger.debug("Lanzando Chrome: %s", " ".join(args))

        try:
            popen = subprocess.Popen(
                args,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                creationflags=_DETACHED_FLAGS,
                close_fds=True,
            )
        except (OSError, ValueError) as exc:
            record.state = ProcessState.FAILED
            record.error = exc
            callback = on_error or _log_launch_error
            asyncio.get_running_loop().call_soon(callback, record, exc)
            return record

        record.popen = popen
        record.pid = popen.pid
        record.state = ProcessState.RUNNING
        self.processes.append(record)
        self._install_exit_hooks()
        logger.info("Chrome lanzado (pid %s) en el puerto %s.", popen.pid, self.config.debug_port)
        return record

    def kill_spawned(self) -> None:
        """Mata, en la medida de lo posible, los procesos lanzados por nosotros."""

        for record in self.processes:
            record.kill()

    async def terminate(self, *, cancel: asyncio.Event | None = None) -> None:
        """Mata todos los Chrome y espera, sin límite, a que desaparezcan.

        Para acotar la espera se puede activar ``cancel`` (lanza
        :class:`WaitCancelledError`) o cancelar la tarea que la ejecuta.
        """

        self.ensure_supported()

        target = self.process_name.lower()
        killed = 0
        try:
            for proc in psutil.process_iter(["name"]):
                if (proc.info.get("name") or "").lower() != target:
                    continue
                try:
                    proc.kill()
                    killed += 1
                except (psutil.NoSuchProcess, psutil.AccessDenied) as exc:
                    logger.warning("No se pudo matar %s: %s", self.process_name, exc)
        except (psutil.Error, OSError) as exc:
            logger.warning("No se pudo recorrer la lista de procesos: %s", exc)
        logger.info("Se enviaron %d orden(es) de cierre a %s.", killed, self.process_name)

        while self.is_any_instance_running():
            if cancel is not None and cancel.is_set():
                raise WaitCancelledError(
                    f"Espera de cierre de {self.process_name} cancelada."
                )
            await asyncio.sleep(TERMINATE_POLL_INTERVAL)

        for record in self.processes:
            if record.state is not ProcessState.FAILED:
                record.state = ProcessState.EXITED
        logger.info("No quedan procesos %s en ejecución.", self.process_name)

    # -- ganchos de salida ------------------------------------------------
    def _exit_signals(self) -> list[int]:
        names = ["SIGINT", "SIGTERM", "SIGBREAK"]
        return [getattr(signal, name) for name in names if hasattr(signal, name)]

    def _install_exit_hooks(self) -> None:
        if self._hooks_installed:
            return
        atexit.register(self.kill_spawned)
        for signum in self._exit_signals():
            try:
                self._previous_handlers[signum] = signal.signal(signum, self._handle_exit_signal)
            except (ValueError, OSError) as exc:
                # ``signal.signal`` sólo funciona desde el hilo principal.
                logger.debug("No se pudo registrar la señal %s: %s", signum, exc)
        self._hooks_installed = True

    def _uninstall_exit_hooks(self) -> None:
        if not self._hooks_installed:
            return
        atexit.unregister(self.kill_spawned)
        for signum, previous in self._previous_handlers.items():
            try:
                signal.signal(signum, previous)
            except (ValueError, OSError, TypeError) as exc:
                logger.debug("No se pudo restaurar la señal %s: %s", signum, exc)
        self._previous_handlers.clear()
        self._hooks_installed = False

    def _handle_exit_signal(self, signum: int, frame: Any) -> None:
        logger.info("Señal %s recibida; cerrando Chrome.", signum)
        self.kill_spawned()
        previous = self._previous_handlers.get(signum)
        if callable(previous):
            previous(signum, frame)
        elif previous == signal.SIG_IGN:
            return
        elif signum == signal.SIGINT:
            raise KeyboardInterrupt
        else:
            raise SystemExit(128 + signum)


__all__ = [
    "CHROME_PROCESS_NAME",
    "ProcessState",
    "ProcessSupervisor",
    "SUPPORTED_PLATFORM",
    "SupervisedProcess",
    "TERMINATE_POLL_INTERVAL",
    "build_launch_args",
]
