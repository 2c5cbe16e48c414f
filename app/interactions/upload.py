"""Carga de archivos mediante ``<input type="file">``."""

from __future__ import annotations

import logging
from pathlib import Path

from playwright.async_api import Page

from browser.errors import ElementNotFoundError

from .constants import FILE_INPUT_SELECTOR


logger = logging.getLogger(__name__)


async def upload_file(
    page: Page, url: str, file_path: str | Path, selector: str = FILE_INPUT_SELECTOR
) -> None:
    """Abre ``url`` y adjunta ``file_path`` al campo ``selector``."""

    await page.goto(url)
    await page.wait_for_selector(selector)

    file_input = await page.query_selector(selector)
    if file_input is None:
        raise ElementNotFoundError(selector)

    await file_input.set_input_files(str(file_path))
    logger.info("Archivo %s adjuntado en %s.", file_path, selector)


__all__ = ["upload_file"]
