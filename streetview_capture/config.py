"""Configuration objects and constants for the capture pipeline."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

DEFAULT_DIMENSIONS: Tuple[int, int] = (2880, 1800)
DEFAULT_SEARCH_URL_TEMPLATE = "https://www.google.nl/maps/place/{address}"

# Clicked in order to move from the place card into panorama mode.
HERO_IMAGE_SELECTOR = "button.section-hero-header-image-hero-clickable"
PANE_TOGGLE_SELECTOR = "button.widget-pane-toggle-button"
VIEW_HERE_SELECTOR = "#pushdown a:last-child"
INTERACTION_SELECTORS: Tuple[str, ...] = (
    HERO_IMAGE_SELECTOR,
    PANE_TOGGLE_SELECTOR,
    VIEW_HERE_SELECTOR,
)

# Removed before capture to get a clean frame.
OVERLAY_SELECTORS: Tuple[str, ...] = (
    "#titlecard",
    "#minimap",
    "#image-header",
    "#fineprint",
    ".app-viewcard-strip",
)

COPYRIGHT_SELECTOR = "#image-header"

SCREENSHOT_KIND = "screenshot"
ADDRESS_KIND = "address"
POI_COLLECTION = "pois"
# Unprocessed POIs carry annotations.screenshot == 0 in the backing store.
PENDING_SENTINEL = 0


@dataclass
class CaptureConfig:
    """Settings that control the viewer interaction and output location."""

    output_root: Path = Path("screenshots")
    dimensions: Tuple[int, int] = DEFAULT_DIMENSIONS
    timeout_unit: float = 4.0
    navigation_timeout: float = 30.0
    headless: bool = True
    search_url_template: str = DEFAULT_SEARCH_URL_TEMPLATE
    image_format: str = "jpeg"
    copyright_selector: str = COPYRIGHT_SELECTOR
    interaction_selectors: Tuple[str, ...] = INTERACTION_SELECTORS
    overlay_selectors: Tuple[str, ...] = OVERLAY_SELECTORS

    @property
    def initial_settle(self) -> float:
        return self.timeout_unit * 2


@dataclass
class StoreConfig:
    """Endpoints for the document store and the asset upload service."""

    api_url: str
    upload_url: str
    token: Optional[str] = None
    upload_namespace: str = "streetview"
    request_timeout: float = 30.0

    @classmethod
    def from_env(cls) -> "StoreConfig":
        api_url = os.getenv("STREETVIEW_API_URL", "")
        if not api_url:
            raise ValueError("STREETVIEW_API_URL is not set")
        return cls(
            api_url=api_url.rstrip("/"),
            upload_url=os.getenv("STREETVIEW_UPLOAD_URL", api_url).rstrip("/"),
            token=os.getenv("STREETVIEW_API_TOKEN") or None,
            upload_namespace=os.getenv("STREETVIEW_UPLOAD_NAMESPACE", "streetview"),
            request_timeout=float(os.getenv("STREETVIEW_REQUEST_TIMEOUT", "30")),
        )
