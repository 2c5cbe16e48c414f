"""Lectura y espera de texto en la página."""

from __future__ import annotations

import logging
import re
import time

from playwright.async_api import ElementHandle, Page

from browser.errors import ElementNotFoundError, TextNotFoundError

from .constants import (
    BODY_TEXT_MAX_ATTEMPTS,
    ELEMENT_TEXT_MAX_RETRIES,
    TEXT_CONTAINER_SELECTOR,
    TEXT_POLL_DELAY_MS,
)


logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def _collapse(text: str) -> str:
    return _WHITESPACE.sub(" ", text or "")


async def read_body_text(page: Page) -> str:
    """``innerText`` del ``<body>`` o cadena vacía si aún no existe."""

    text = await page.evaluate("() => (document.body || { innerText: '' }).innerText || ''")
    return text or ""


async def wait_for_element_containing_text(
    page: Page,
    text_to_match: str,
    max_retries: int = ELEMENT_TEXT_MAX_RETRIES,
    delay_ms: int = TEXT_POLL_DELAY_MS,
) -> ElementHandle:
    """Busca un ``div`` cuyo texto contenga ``text_to_match``, reintentando."""

    logger.info("Esperando un elemento con el texto: %s", text_to_match)
    for _ in range(max_retries):
        await page.wait_for_timeout(delay_ms)
        elements = await page.query_selector_all(TEXT_CONTAINER_SELECTOR)
        for element in elements:
            content = await page.evaluate("(el) => el.textContent || ''", element)
            if text_to_match in _collapse(content):
                return element

    raise ElementNotFoundError(text_to_match, max_retries)


async def wait_for_text_in_body(
    page: Page,
    text: str,
    max_attempts: int = BODY_TEXT_MAX_ATTEMPTS,
    delay_ms: int = TEXT_POLL_DELAY_MS,
) -> None:
    """Espera a que ``text`` aparezca en el cuerpo de la página."""

    started = time.monotonic()
    for attempt in range(max_attempts):
        logger.info(
            "Esperando el texto, intento %d, transcurrido %.1fs",
            attempt,
            time.monotonic() - started,
        )
        await page.wait_for_timeout(delay_ms)
        body_text = await read_body_text(page)
        logger.debug("Texto del body: %s", _collapse(body_text))
        if text in body_text:
            return

    raise TextNotFoundError(text, max_attempts)


__all__ = ["read_body_text", "wait_for_element_containing_text", "wait_for_text_in_body"]
