"""Tests for the capture session and the single-shot driver."""

import asyncio
import json
from unittest.mock import patch

import pytest

from streetview_capture.capture import CaptureSession, resolve_target, run_capture, write_metadata
from streetview_capture.errors import InputError, StreetViewNotFound
from streetview_capture.models import WorkItem

from conftest import PLACE_URL, STREET_VIEW_URL, FakePage, ViewerFactory

FEATURE = {
    "type": "Feature",
    "properties": {"address": "Dam 1 Amsterdam", "name": "Paleis"},
    "geometry": {"type": "Point", "coordinates": [4.891, 52.373]},
}


def test_capture_by_address(config):
    html = '<div id="image-header">Image capture: May 2017</div>'
    factory = ViewerFactory([FakePage(html=html)], config)
    session = CaptureSession(config, factory)
    item = WorkItem(address="Dam 1 Amsterdam", feature=FEATURE)

    result = asyncio.run(session.capture(item, config.output_root))

    assert result.id == "dam+1+amsterdam"
    assert result.image_path == config.output_root / "dam+1+amsterdam.jpg"
    assert result.image_path.exists()
    assert result.url == "https://www.google.nl/maps/place/Dam%201%20Amsterdam"
    assert result.viewer_url == STREET_VIEW_URL
    assert result.geometry.year == 2017
    assert factory.released == 1


def test_capture_not_found_releases_viewer_once(config):
    factory = ViewerFactory([FakePage(final_url=PLACE_URL)], config)
    session = CaptureSession(config, factory)
    item = WorkItem(address="Nowhere 1")

    with pytest.raises(StreetViewNotFound) as excinfo:
        asyncio.run(session.capture(item, config.output_root))

    assert excinfo.value.address == "Nowhere 1"
    assert excinfo.value.url == "https://www.google.nl/maps/place/Nowhere%201"
    assert excinfo.value.to_annotation()["address"] == "Nowhere 1"
    assert factory.released == 1
    assert not config.output_root.exists()


def test_capture_requires_target(config):
    session = CaptureSession(config, ViewerFactory([], config))
    with pytest.raises(InputError):
        asyncio.run(session.capture(WorkItem(id="1"), config.output_root))


def test_metadata_shape(config):
    factory = ViewerFactory([FakePage()], config)
    session = CaptureSession(config, factory)
    item = WorkItem(url="https://www.google.nl/maps/@52.3731,4.8922,2.5a,75y,120.5h,95.2t")

    result = asyncio.run(session.capture(item, config.output_root))
    path = write_metadata(result, config.output_root)
    meta = json.loads(path.read_text(encoding="utf-8"))

    assert path.name == "52.3731-4.8922-2.5-75-120.5-95.2.json"
    assert meta["id"] == "52.3731-4.8922-2.5-75-120.5-95.2"
    assert meta["osm"] is None
    street_view = meta["streetView"]
    assert street_view["dimensions"] == [2880, 1800]
    assert street_view["url"] == item.url
    assert street_view["a"] == 2.5
    assert street_view["fov"] == 75
    assert street_view["heading"] == 120.5
    assert street_view["pitch"] == pytest.approx(5.2)
    assert street_view["geometry"] == {"type": "Point", "coordinates": [4.8922, 52.3731]}
    assert "year" not in street_view


def test_resolve_target_feature():
    item = resolve_target(json.dumps(FEATURE), None)
    assert item.address == "Dam 1 Amsterdam"
    assert item.feature == FEATURE
    assert item.url is None


def test_resolve_target_url():
    assert resolve_target(None, PLACE_URL) == WorkItem(url=PLACE_URL)


@pytest.mark.parametrize(
    "feature_json, url",
    [
        (None, None),
        ("", ""),
        (json.dumps(FEATURE), PLACE_URL),
        ("{not json", None),
        ("[1, 2]", None),
        (json.dumps({"type": "Feature", "properties": {"name": "x"}}), None),
        (json.dumps({"type": "Feature"}), None),
    ],
)
def test_resolve_target_input_errors(feature_json, url):
    with pytest.raises(InputError):
        resolve_target(feature_json, url)


class _Playwright:
    async def __aenter__(self):
        return object()

    async def __aexit__(self, *exc):
        return False


def test_run_capture_writes_nothing_when_not_found(config):
    factory = ViewerFactory([FakePage(final_url=PLACE_URL)], config)

    with patch("streetview_capture.capture.async_playwright", return_value=_Playwright()), \
            patch("streetview_capture.capture.open_viewer", lambda *a, **kw: factory()):
        result = asyncio.run(run_capture(config, WorkItem(address="Nowhere 1")))

    assert result is None
    assert factory.released == 1
    assert not config.output_root.exists()


def test_run_capture_writes_image_and_metadata(config):
    factory = ViewerFactory([FakePage()], config)

    with patch("streetview_capture.capture.async_playwright", return_value=_Playwright()), \
            patch("streetview_capture.capture.open_viewer", lambda *a, **kw: factory()):
        result = asyncio.run(
            run_capture(config, WorkItem(address="123 Main St", feature=FEATURE))
        )

    assert (config.output_root / "123+main+st.jpg").exists()
    meta = json.loads((config.output_root / "123+main+st.json").read_text(encoding="utf-8"))
    assert meta["osm"] == FEATURE
    assert result.id == "123+main+st"


def test_capture_address_with_slash_stays_in_output_dir(config):
    factory = ViewerFactory([FakePage()], config)
    session = CaptureSession(config, factory)
    item = WorkItem(address="../Unit 4/5 Main St")

    result = asyncio.run(session.capture(item, config.output_root))
    metadata_path = write_metadata(result, config.output_root)

    assert result.id == "../unit+4/5+main+st"
    assert result.image_path.parent == config.output_root
    assert metadata_path.parent == config.output_root
    assert metadata_path.name == "_unit+4_5+main+st.json"
