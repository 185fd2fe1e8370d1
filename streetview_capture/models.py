"""Data models used throughout the capture pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .utils import address_to_id


@dataclass(frozen=True)
class WorkItem:
    """A single POI to capture, addressed either by street address or URL."""

    id: Optional[str] = None
    address: Optional[str] = None
    url: Optional[str] = None
    feature: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class Geometry:
    """Camera state parsed from a panorama viewer URL."""

    latitude: float
    longitude: float
    altitude: float
    fov: float
    heading: float
    pitch: float
    year: Optional[int] = None
    raw_values: Tuple[str, ...] = field(default=(), repr=False, compare=False)

    def to_point(self) -> Dict[str, Any]:
        return {"type": "Point", "coordinates": [self.longitude, self.latitude]}


@dataclass
class CaptureResult:
    """Screenshot and camera metadata produced by one capture session."""

    id: str
    image_path: Path
    geometry: Geometry
    url: str
    viewer_url: str
    dimensions: Tuple[int, int]
    feature: Optional[Dict[str, Any]] = None
    address: Optional[str] = None

    def street_view(self) -> Dict[str, Any]:
        return {
            "dimensions": list(self.dimensions),
            "url": self.url,
            "a": self.geometry.altitude,
            "fov": self.geometry.fov,
            "heading": self.geometry.heading,
            "pitch": self.geometry.pitch,
            "geometry": self.geometry.to_point(),
        }

    def to_metadata(self) -> Dict[str, Any]:
        """Metadata record written next to the image in single-shot mode."""
        return {
            "id": self.id,
            "streetView": self.street_view(),
            "osm": self.feature,
        }

    def to_annotation(self, screenshot_url: str) -> Dict[str, Any]:
        """Annotation data stored for a POI once its screenshot is uploaded."""
        data = self.street_view()
        if self.geometry.year is not None:
            data["year"] = self.geometry.year
        data["screenshotUrl"] = screenshot_url
        return data


def capture_id(item: WorkItem, geometry: Geometry) -> str:
    """Derive the output identifier for a capture."""
    if item.address:
        return address_to_id(item.address)
    return "-".join(geometry.raw_values)
