"""High-level orchestration for capturing one Street View screenshot."""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from functools import partial
from pathlib import Path
from typing import Any, AsyncContextManager, Callable, Dict, Optional

from playwright.async_api import async_playwright

from .config import CaptureConfig
from .errors import InputError, StreetViewNotFound
from .geometry import extract_geometry
from .models import CaptureResult, WorkItem, capture_id
from .utils import id_to_filename, search_url
from .viewer import Settle, ViewerController, open_viewer

logger = logging.getLogger("streetview_capture")

ViewerFactory = Callable[[], AsyncContextManager[ViewerController]]


class CaptureSession:
    """Turn a work item into a screenshot plus camera metadata."""

    def __init__(self, config: CaptureConfig, viewer_factory: ViewerFactory) -> None:
        self.config = config
        self._viewer_factory = viewer_factory

    def target_url(self, item: WorkItem) -> str:
        if item.url:
            return item.url
        if item.address:
            return search_url(item.address, self.config.search_url_template)
        raise InputError("Work item has neither an address nor a URL")

    async def capture(self, item: WorkItem, output_dir: Path) -> CaptureResult:
        url = self.target_url(item)
        if item.address:
            logger.info("Taking Street View screenshot for address %s...", item.address)
        else:
            logger.info("Taking Street View screenshot of %s...", url)

        async with self._viewer_factory() as viewer:
            await viewer.run_script(url, self.config.dimensions)
            viewer_url = viewer.current_url()
            geometry = extract_geometry(viewer_url)
            if geometry is None:
                raise StreetViewNotFound(
                    f"No Street View camera state in {viewer_url}",
                    address=item.address,
                    url=url,
                )
            year = await viewer.read_capture_year()
            if year is not None:
                geometry = replace(geometry, year=year)

            result_id = capture_id(item, geometry)
            output_dir.mkdir(parents=True, exist_ok=True)
            image_path = await viewer.capture_image(
                output_dir / f"{id_to_filename(result_id)}.jpg"
            )

        return CaptureResult(
            id=result_id,
            image_path=image_path,
            geometry=geometry,
            url=url,
            viewer_url=viewer_url,
            dimensions=self.config.dimensions,
            feature=item.feature,
            address=item.address,
        )


def resolve_target(feature_json: Optional[str] = None, url: Optional[str] = None) -> WorkItem:
    """Build a work item from exactly one of a GeoJSON feature or a URL."""
    if feature_json and url:
        raise InputError("Provide either a GeoJSON feature or a URL, not both")
    if url:
        return WorkItem(url=url)
    if not feature_json:
        raise InputError("No URL or GeoJSON feature provided!")
    try:
        feature = json.loads(feature_json)
    except json.JSONDecodeError as exc:
        raise InputError(f"Invalid GeoJSON feature: {exc}") from exc
    if not isinstance(feature, dict):
        raise InputError("GeoJSON feature must be an object")
    properties: Dict[str, Any] = feature.get("properties") or {}
    address = properties.get("address")
    if not address:
        raise InputError("No address found in POI data")
    return WorkItem(address=address, feature=feature)


def write_metadata(result: CaptureResult, output_dir: Path) -> Path:
    metadata_path = output_dir / f"{id_to_filename(result.id)}.json"
    metadata_path.write_text(
        json.dumps(result.to_metadata(), indent=2), encoding="utf-8"
    )
    logger.info("Saved metadata to %s", metadata_path)
    return metadata_path


async def run_capture(
    config: CaptureConfig,
    item: WorkItem,
    settle: Optional[Settle] = None,
) -> Optional[CaptureResult]:
    """Capture a single work item into ``config.output_root``."""
    async with async_playwright() as playwright:
        session = CaptureSession(
            config, partial(open_viewer, playwright, config, settle=settle)
        )
        try:
            result = await session.capture(item, config.output_root)
        except StreetViewNotFound as exc:
            logger.error("%s (address=%s, url=%s)", exc, exc.address, exc.url)
            return None

    write_metadata(result, config.output_root)
    return result
