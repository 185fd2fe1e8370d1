"""Drive a Google Maps page from a place card into a clean panorama frame."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable, List, Optional, Tuple

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, Playwright

from .config import CaptureConfig
from .errors import ResourceError
from .geometry import extract_capture_year

logger = logging.getLogger("streetview_capture")

Settle = Callable[[float], Awaitable[None]]

_REMOVE_ELEMENT_JS = """
(selector) => {
  const element = document.querySelector(selector)
  if (element) {
    element.remove()
    return true
  }
  return false
}
"""


@dataclass
class ClickOutcome:
    """Result of clicking one element matched by a selector."""

    selector: str
    index: int
    clicked: bool
    error: Optional[str] = None


@dataclass
class InteractionReport:
    """Everything that happened while walking the viewer into panorama mode."""

    url: str
    clicks: List[ClickOutcome] = field(default_factory=list)

    @property
    def failed_clicks(self) -> List[ClickOutcome]:
        return [outcome for outcome in self.clicks if not outcome.clicked]


class ViewerController:
    """Fixed UI script against a live map viewer page.

    The viewer has no reliable "ready" signal, so every step is followed by a
    fixed settle interval instead of waiting for navigation. Some runs will read
    stale state; callers find out when the camera state is missing from the URL.
    """

    def __init__(
        self,
        page: Page,
        config: CaptureConfig,
        settle: Optional[Settle] = None,
    ) -> None:
        self.page = page
        self.config = config
        self._settle = settle or self._wait

    async def _wait(self, seconds: float) -> None:
        await self.page.wait_for_timeout(int(seconds * 1000))

    async def settle(self, seconds: float) -> None:
        logger.debug("Waiting %.1fs for the viewer to settle", seconds)
        await self._settle(seconds)

    async def navigate(self, url: str, dimensions: Tuple[int, int]) -> None:
        logger.info("Loading %s", url)
        await self.page.goto(url)
        width, height = dimensions
        await self.page.set_viewport_size({"width": width, "height": height})
        await self.settle(self.config.initial_settle)

    async def click_all(self, selector: str) -> List[ClickOutcome]:
        """Click every element matching ``selector``, then settle once."""
        outcomes: List[ClickOutcome] = []
        try:
            elements = await self.page.query_selector_all(selector)
        except PlaywrightError as exc:
            logger.warning("Could not query %s: %s", selector, exc)
            outcomes.append(ClickOutcome(selector, -1, False, str(exc)))
            elements = []
        for index, element in enumerate(elements):
            try:
                await element.click()
            except PlaywrightError as exc:
                logger.warning("Could not click %s [%d]: %s", selector, index, exc)
                outcomes.append(ClickOutcome(selector, index, False, str(exc)))
                continue
            outcomes.append(ClickOutcome(selector, index, True))
        if not outcomes:
            logger.debug("No elements matched %s", selector)
        await self.settle(self.config.timeout_unit)
        return outcomes

    async def run_script(self, url: str, dimensions: Tuple[int, int]) -> InteractionReport:
        await self.navigate(url, dimensions)
        report = InteractionReport(url=url)
        for selector in self.config.interaction_selectors:
            report.clicks.extend(await self.click_all(selector))
        if report.failed_clicks:
            logger.info(
                "%d of %d clicks failed for %s",
                len(report.failed_clicks),
                len(report.clicks),
                url,
            )
        return report

    def current_url(self) -> str:
        return self.page.url

    async def read_capture_year(self) -> Optional[int]:
        try:
            html = await self.page.content()
        except PlaywrightError as exc:
            logger.warning("Could not read page content: %s", exc)
            return None
        return extract_capture_year(html, self.config.copyright_selector)

    async def remove(self, selector: str) -> bool:
        try:
            removed = bool(await self.page.evaluate(_REMOVE_ELEMENT_JS, selector))
        except PlaywrightError as exc:
            logger.warning("Could not remove overlay %s: %s", selector, exc)
            return False
        if not removed:
            logger.debug("Overlay %s not present", selector)
        return removed

    async def remove_overlays(self) -> List[str]:
        removed = []
        for selector in self.config.overlay_selectors:
            if await self.remove(selector):
                removed.append(selector)
        return removed

    async def capture_image(self, path: Path) -> Path:
        await self.remove_overlays()
        await self.page.screenshot(path=str(path), type=self.config.image_format)
        logger.info("Saved screenshot to %s", path)
        return path


@asynccontextmanager
async def open_viewer(
    playwright: Playwright,
    config: CaptureConfig,
    settle: Optional[Settle] = None,
) -> AsyncIterator[ViewerController]:
    """Launch a browser page and close it again on every exit path."""
    try:
        browser = await playwright.chromium.launch(headless=config.headless)
    except PlaywrightError as exc:
        raise ResourceError(f"Could not launch browser: {exc}") from exc

    failed = False
    try:
        try:
            page = await browser.new_page()
        except PlaywrightError as exc:
            raise ResourceError(f"Could not open page: {exc}") from exc
        page.set_default_navigation_timeout(config.navigation_timeout * 1000)
        yield ViewerController(page, config, settle=settle)
    except BaseException:
        failed = True
        raise
    finally:
        try:
            await browser.close()
        except PlaywrightError as exc:
            if not failed:
                raise ResourceError(f"Could not close browser: {exc}") from exc
            logger.warning("Could not close browser: %s", exc)
