"""Fake Playwright objects shared by the tests."""

from contextlib import asynccontextmanager
from pathlib import Path

import pytest
from playwright.async_api import Error as PlaywrightError

from streetview_capture.config import CaptureConfig
from streetview_capture.viewer import ViewerController

JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00" + b"\x00" * 64
STREET_VIEW_URL = (
    "https://www.google.nl/maps/@52.3731,4.8922,2.5a,75y,120.5h,95.2t/"
    "data=!3m6!1e1!3m4!1sabc!2e0!7i16384!8i8192"
)
PLACE_URL = "https://www.google.nl/maps/place/Dam,+Amsterdam/@52.37,4.89,17z"


class FakeElement:
    def __init__(self, fail=False):
        self.fail = fail
        self.clicks = 0

    async def click(self):
        self.clicks += 1
        if self.fail:
            raise PlaywrightError("Element is not attached to the DOM")


class FakePage:
    def __init__(self, final_url=STREET_VIEW_URL, elements=None, html="", present=()):
        self.url = "about:blank"
        self.final_url = final_url
        self.elements = elements or {}
        self.html = html
        self.present = set(present)
        self.removed = []
        self.viewport = None
        self.screenshots = []

    async def goto(self, url):
        self.url = self.final_url or url

    async def set_viewport_size(self, size):
        self.viewport = size

    async def query_selector_all(self, selector):
        return self.elements.get(selector, [])

    async def evaluate(self, expression, selector):
        if selector in self.present:
            self.present.discard(selector)
            self.removed.append(selector)
            return True
        return False

    async def content(self):
        return self.html

    async def screenshot(self, path, type="jpeg"):
        Path(path).write_bytes(JPEG_BYTES)
        self.screenshots.append(path)

    async def wait_for_timeout(self, timeout):
        pass


class SettleRecorder:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


class ViewerFactory:
    """Hands out viewers over fake pages and counts how often they are released."""

    def __init__(self, pages, config):
        self.pages = list(pages)
        self.config = config
        self.opened = 0
        self.released = 0
        self.settle = SettleRecorder()

    @asynccontextmanager
    async def __call__(self):
        page = self.pages[self.opened]
        self.opened += 1
        try:
            yield ViewerController(page, self.config, settle=self.settle)
        finally:
            self.released += 1


@pytest.fixture
def config(tmp_path):
    return CaptureConfig(output_root=tmp_path / "screenshots")
