"""Capture screenshots for every pending POI of a city and annotate them."""

from __future__ import annotations

import logging
import tempfile
import time
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Any, Dict, List, Optional

from playwright.async_api import async_playwright

from .capture import CaptureSession
from .config import SCREENSHOT_KIND, CaptureConfig
from .errors import CaptureError, MissingDependencyError
from .images import read_screenshot
from .models import CaptureResult, WorkItem
from .store import AnnotationStore, AssetUploader, lookup_address, poi_id_of
from .utils import id_to_filename
from .viewer import Settle, open_viewer

logger = logging.getLogger("streetview_capture.batch")


@dataclass
class ItemOutcome:
    """What was stored for one POI."""

    poi_id: str
    annotation: Dict[str, Any]
    result: Optional[CaptureResult] = None

    @property
    def succeeded(self) -> bool:
        return "error" not in self.annotation


class BatchRunner:
    """Run a capture session per POI, one at a time.

    A failure of any step for one POI becomes an error annotation on that POI
    and never stops the remaining POIs from being attempted.
    """

    def __init__(
        self,
        session: CaptureSession,
        store: AnnotationStore,
        uploader: AssetUploader,
        namespace: str = "streetview",
    ) -> None:
        self.session = session
        self.store = store
        self.uploader = uploader
        self.namespace = namespace

    async def process_item(self, poi_id: str, work_dir: Path) -> ItemOutcome:
        address: Optional[str] = None
        url: Optional[str] = None
        try:
            address = lookup_address(self.store, poi_id)
            item = WorkItem(id=poi_id, address=address)
            url = self.session.target_url(item)
            result = await self.session.capture(item, work_dir / id_to_filename(poi_id))
            data, content_type = read_screenshot(result.image_path)
            result.image_path.unlink()
            uploaded = self.uploader.upload_file(
                self.namespace,
                poi_id,
                SCREENSHOT_KIND,
                data,
                result.image_path.name,
                content_type,
            )
            annotation = result.to_annotation(uploaded["url"])
        except Exception as exc:  # pylint: disable=broad-except
            if isinstance(exc, CaptureError):
                logger.error("Failed to capture POI %s: %s", poi_id, exc)
            else:
                logger.exception("Unexpected error capturing POI %s", poi_id)
            annotation = failure_annotation(exc, address, url)
            self._annotate(poi_id, annotation)
            return ItemOutcome(poi_id, annotation)

        try:
            self.store.add_annotation(poi_id, SCREENSHOT_KIND, annotation)
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception(
                "Could not store %s annotation for POI %s", SCREENSHOT_KIND, poi_id
            )
            annotation = failure_annotation(exc, address, url)
            self._annotate(poi_id, annotation)
            return ItemOutcome(poi_id, annotation, result)
        return ItemOutcome(poi_id, annotation, result)

    def _annotate(self, poi_id: str, annotation: Dict[str, Any]) -> bool:
        try:
            self.store.add_annotation(poi_id, SCREENSHOT_KIND, annotation)
        except Exception:  # pylint: disable=broad-except
            logger.exception(
                "Could not store %s annotation for POI %s", SCREENSHOT_KIND, poi_id
            )
            return False
        return True

    async def run(self, city: str, limit: int, work_dir: Path) -> List[ItemOutcome]:
        documents = self.store.find_pending(city, limit)
        if not documents:
            logger.info("No POIs without screenshot found for %s", city)
            return []

        outcomes: List[ItemOutcome] = []
        for document in documents[:limit]:
            try:
                poi_id = poi_id_of(document)
            except MissingDependencyError as exc:
                logger.error("Skipping POI document: %s", exc)
                continue
            outcomes.append(await self.process_item(poi_id, work_dir))
        return outcomes


def failure_annotation(
    exc: BaseException,
    address: Optional[str] = None,
    url: Optional[str] = None,
) -> Dict[str, Any]:
    """Error record stored in place of a screenshot annotation."""
    if isinstance(exc, CaptureError):
        data = exc.to_annotation()
    else:
        data = {"error": str(exc) or type(exc).__name__}
    if address and "address" not in data:
        data["address"] = address
    if url and "url" not in data:
        data["url"] = url
    return data


async def run_batch(
    config: CaptureConfig,
    store: AnnotationStore,
    uploader: AssetUploader,
    city: str,
    limit: int = 1,
    namespace: str = "streetview",
    settle: Optional[Settle] = None,
) -> List[ItemOutcome]:
    """Capture up to ``limit`` pending POIs of ``city``."""
    overall_start = time.perf_counter()
    with tempfile.TemporaryDirectory(prefix="streetview-capture-") as tmp_dir:
        async with async_playwright() as playwright:
            session = CaptureSession(
                config, partial(open_viewer, playwright, config, settle=settle)
            )
            runner = BatchRunner(session, store, uploader, namespace=namespace)
            outcomes = await runner.run(city, limit, Path(tmp_dir))

    successes = sum(1 for outcome in outcomes if outcome.succeeded)
    logger.info(
        "Finished in %.2fs (%d/%d succeeded, %d failed)",
        time.perf_counter() - overall_start,
        successes,
        len(outcomes),
        len(outcomes) - successes,
    )
    return outcomes
