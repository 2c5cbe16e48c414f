"""Obtención de la pestaña principal de una sesión CDP ya conectada."""

from __future__ import annotations

import asyncio
import logging
from typing import Mapping, Optional

from playwright.async_api import Page

from browser.cdp import BrowserConnection
from browser.errors import NoPagesFoundError


logger = logging.getLogger(__name__)

# Chrome puede tardar en adjuntar pestañas recién conectadas.
PAGE_SETTLE_SECONDS = 1.0
DEFAULT_VIEWPORT: Mapping[str, int] = {"width": 1366, "height": 768}


async def first_page(
    connection: BrowserConnection,
    viewport: Optional[Mapping[str, int]] = DEFAULT_VIEWPORT,
) -> Page:
    """Devuelve la primera pestaña abierta y le aplica ``viewport``.

    Con ``viewport=None`` se deja el tamaño que tenga la pestaña.
    """

    await asyncio.sleep(PAGE_SETTLE_SECONDS)

    pages = connection.pages()
    if not pages:
        raise NoPagesFoundError("El navegador conectado no tiene pestañas abiertas.")

    page = pages[0]
    logger.info("Usando la pestaña %s de %d disponible(s).", page.url, len(pages))
    if viewport is not None:
        await page.set_viewport_size({"width": viewport["width"], "height": viewport["height"]})
    return page


__all__ = ["DEFAULT_VIEWPORT", "PAGE_SETTLE_SECONDS", "first_page"]
