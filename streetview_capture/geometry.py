"""Parse the panorama camera state out of viewer URLs and page markup."""

from __future__ import annotations

import re
from typing import Optional

from bs4 import BeautifulSoup

from .config import COPYRIGHT_SELECTOR
from .models import Geometry

_NUMBER = r"(-?\d+\.?\d*)"
CAMERA_STATE_PATTERN = re.compile(
    rf"@{_NUMBER},{_NUMBER},{_NUMBER}a,{_NUMBER}y,{_NUMBER}h,{_NUMBER}t"
)
YEAR_PATTERN = re.compile(r"\b((?:19|20)\d{2})\b")


def extract_geometry(url: str) -> Optional[Geometry]:
    """Return the camera geometry encoded in ``url`` or ``None``.

    The viewer appends ``@lat,lon,<alt>a,<fov>y,<heading>h,<tilt>t`` to the
    URL once it is in panorama mode. Tilt is measured from the zenith, so it is
    shifted by 90 degrees to get a pitch relative to the horizon. A URL without
    this segment means the viewer never left the map or place card.
    """
    match = CAMERA_STATE_PATTERN.search(url or "")
    if not match:
        return None
    latitude, longitude, altitude, fov, heading, tilt = (
        float(value) for value in match.groups()
    )
    return Geometry(
        latitude=latitude,
        longitude=longitude,
        altitude=altitude,
        fov=fov,
        heading=heading,
        pitch=tilt - 90,
        raw_values=match.groups(),
    )


def extract_capture_year(html: str, selector: str = COPYRIGHT_SELECTOR) -> Optional[int]:
    """Read the capture year from the copyright text node, if there is one."""
    if not html:
        return None
    soup = BeautifulSoup(html, "html.parser")
    node = soup.select_one(selector)
    if node is None:
        return None
    text = node.get_text(" ", strip=True)
    match = YEAR_PATTERN.search(text)
    if not match:
        return None
    return int(match.group(1))
