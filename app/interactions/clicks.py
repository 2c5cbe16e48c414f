"""Clics por selector o por texto visible."""

from __future__ import annotations

import json
import logging

from playwright.async_api import Page

from .constants import CLICK_DELAY_MS


logger = logging.getLogger(__name__)


async def click_selector_repeatedly(
    page: Page, selector: str, times: int = 1, delay_ms: int = CLICK_DELAY_MS
) -> None:
    """Hace clic ``times`` veces sobre ``selector``, con pausas antes y después."""

    for _ in range(times):
        await page.wait_for_timeout(delay_ms)
        await page.wait_for_selector(selector)
        await page.click(selector)

    await page.wait_for_timeout(delay_ms)


def _normalize_label(text: str | None) -> str:
    return (text or "").strip().lower()


async def click_by_label_text(page: Page, selector: str, label_text: str) -> bool:
    """Hace clic en el primer ``selector`` cuyo texto coincide con ``label_text``.

    La comparación ignora mayúsculas y espacios en los extremos. Devuelve
    ``False`` si ningún elemento coincide.
    """

    await page.wait_for_selector(selector)
    elements = await page.query_selector_all(selector)
    wanted = _normalize_label(label_text)

    for element in elements:
        text = await page.evaluate("(el) => el.textContent", element)
        logger.debug("Texto del elemento: %s", json.dumps(text, ensure_ascii=False))
        if _normalize_label(text) == wanted:
            await element.click()
            return True

    logger.info("Ningún '%s' con el texto '%s'.", selector, label_text)
    return False


__all__ = ["click_by_label_text", "click_selector_repeatedly"]
