"""Helpers for identifiers and viewer URLs."""

from __future__ import annotations

import re
from urllib.parse import quote

from .config import DEFAULT_SEARCH_URL_TEMPLATE

WHITESPACE_PATTERN = re.compile(r"\s+")


def address_to_id(address: str) -> str:
    """Lower-case an address and join its words with ``+``."""
    return WHITESPACE_PATTERN.sub("+", address.lower())


def search_url(address: str, template: str = DEFAULT_SEARCH_URL_TEMPLATE) -> str:
    # Same character set as JavaScript's encodeURIComponent.
    return template.format(address=quote(address, safe="!~*'()"))

PATH_SEPARATOR_PATTERN = re.compile(r"[/\\]")


def id_to_filename(capture_id: str) -> str:
    """File name stem for a capture id that stays inside the output directory."""
    stem = PATH_SEPARATOR_PATTERN.sub("_", capture_id).lstrip(".")
    return stem or "capture"
