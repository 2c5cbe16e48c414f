"""Acciones puntuales sobre una pestaña ya abierta."""

from .clicks import click_by_label_text, click_selector_repeatedly
from .text import read_body_text, wait_for_element_containing_text, wait_for_text_in_body
from .upload import upload_file

__all__ = [
    "click_by_label_text",
    "click_selector_repeatedly",
    "read_body_text",
    "upload_file",
    "wait_for_element_containing_text",
    "wait_for_text_in_body",
]
