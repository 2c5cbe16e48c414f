"""Espera a que el usuario complete el inicio de sesión en el navegador."""

from __future__ import annotations

import asyncio
import logging
from urllib.parse import urlparse

from playwright.async_api import Page

from browser.cdp import BrowserConnection
from browser.errors import WaitCancelledError

from .browser_management import first_page


logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 2.0


def current_hostname(page: Page) -> str:
    """Hostname de la URL actual de ``page`` (vacío si no tiene)."""

    return urlparse(page.url).hostname or ""


async def wait_for_login(
    connection: BrowserConnection,
    target_url: str,
    logged_in_hostname: str,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    *,
    cancel: asyncio.Event | None = None,
) -> Page:
    """Navega a ``target_url`` y espera hasta que la pestaña llegue a ``logged_in_hostname``.

    La espera no tiene límite: el login lo hace una persona. Para acotarla,
    activar ``cancel`` (lanza :class:`WaitCancelledError`) o cancelar la tarea.
    """

    page = await first_page(connection, viewport=None)
    await page.goto(target_url)

    expected = logged_in_hostname.lower()
    checks = 0
    while current_hostname(page).lower() != expected:
        if cancel is not None and cancel.is_set():
            raise WaitCancelledError("Espera de inicio de sesión cancelada.")
        if checks == 0:
            logger.info(
                "Esperando el inicio de sesión: %s -> %s", page.url, logged_in_hostname
            )
        checks += 1
        await asyncio.sleep(poll_interval)

    logger.info("Sesión iniciada en %s.", logged_in_hostname)
    return page


__all__ = ["DEFAULT_POLL_INTERVAL", "current_hostname", "wait_for_login"]
