"""Errores de la capa de navegador."""

from __future__ import annotations


class BrowserAutomationError(RuntimeError):
    """Base de todos los fallos explícitos de la automatización."""


class ConnectFailedError(BrowserAutomationError):
    """Un intento concreto de abrir la sesión CDP falló."""

    def __init__(self, attempt: int, reason: BaseException | str) -> None:
        super().__init__(f"Intento de conexión {attempt} fallido: {reason}")
        self.attempt = attempt


class RetriesExhaustedError(BrowserAutomationError):
    """No se logró conectar tras agotar todos los intentos."""

    def __init__(self, message: str, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


class UnsupportedPlatformError(BrowserAutomationError):
    """La supervisión de procesos no está disponible en este sistema."""

    def __init__(self, platform: str) -> None:
        super().__init__(
            f"La gestión del proceso de Chrome sólo está soportada en Windows (plataforma actual: {platform})."
        )
        self.platform = platform


class LaunchTimeoutError(BrowserAutomationError):
    """El Chrome lanzado localmente nunca expuso su endpoint de depuración."""

    def __init__(self, endpoint: str, attempts: int) -> None:
        super().__init__(
            f"Chrome no respondió en {endpoint} tras {attempts} comprobaciones."
        )
        self.endpoint = endpoint
        self.attempts = attempts


class NoPagesFoundError(BrowserAutomationError):
    """La sesión conectada no tiene ninguna pestaña abierta."""


class ElementNotFoundError(BrowserAutomationError):
    """No apareció el elemento buscado dentro del número de reintentos."""

    def __init__(self, target: str, attempts: int | None = None) -> None:
        if attempts is None:
            message = f"No se encontró el elemento '{target}'."
        else:
            message = f'Elemento con el texto "{target}" no encontrado tras {attempts} intentos.'
        super().__init__(message)
        self.target = target
        self.attempts = attempts


class TextNotFoundError(BrowserAutomationError):
    """El texto esperado nunca apareció en el cuerpo de la página."""

    def __init__(self, text: str, attempts: int) -> None:
        super().__init__(
            f'Tiempo agotado: el texto "{text}" no apareció en la página tras {attempts} intentos.'
        )
        self.text = text
        self.attempts = attempts


class WaitCancelledError(BrowserAutomationError):
    """Una espera sin límite fue cancelada desde fuera."""


__all__ = [
    "BrowserAutomationError",
    "ConnectFailedError",
    "ElementNotFoundError",
    "LaunchTimeoutError",
    "NoPagesFoundError",
    "RetriesExhaustedError",
    "TextNotFoundError",
    "UnsupportedPlatformError",
    "WaitCancelledError",
]
