"""Secuencia de arranque de una sesión de automatización."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Mapping, Optional

from playwright.async_api import Page

from browser.cdp import BrowserConnection, ConnectionManager

from .browser_management import DEFAULT_VIEWPORT, first_page
from .logging_setup import setup_logging


logger = logging.getLogger(__name__)


@asynccontextmanager
async def browser_session(
    manager: ConnectionManager | None = None,
    *,
    profile_directory: str | Path | None = None,
    launch_local: bool | None = None,
    viewport: Optional[Mapping[str, int]] = DEFAULT_VIEWPORT,
) -> AsyncIterator[tuple[BrowserConnection, Page]]:
    """Conecta con Chrome, entrega la pestaña principal y siempre desconecta al salir.

    Ejemplo::

        async with browser_session() as (connection, page):
            await wait_for_text_in_body(page, "Bienvenido")
    """

    setup_logging()

    manager = manager or ConnectionManager()
    connection = await manager.connect_or_launch(profile_directory, launch_local=launch_local)
    try:
        page = await first_page(connection, viewport)
        yield connection, page
    finally:
        await manager.disconnect(connection)
        logger.debug("Sesión con %s liberada.", connection.endpoint)


__all__ = ["browser_session"]
