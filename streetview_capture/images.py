"""Validation of captured screenshot files."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Tuple

from filetype import guess

from .errors import CaptureError

ALLOWED_IMAGE_TYPES = {"jpg", "png", "webp"}


def detect_image_format(data: bytes) -> Optional[Tuple[str, str]]:
    """Detect image type using filetype; returns (extension, mime)."""
    kind = guess(data)
    if kind and kind.mime.startswith("image/"):
        ext = kind.extension.lower()
        if ext == "jpeg":
            ext = "jpg"
        return ext, kind.mime
    return None


def read_screenshot(path: Path) -> Tuple[bytes, str]:
    """Load a screenshot from disk and return its bytes and content type."""
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise CaptureError(f"Could not read screenshot {path}: {exc}") from exc
    if not data:
        raise CaptureError(f"Screenshot {path} is empty")
    detected = detect_image_format(data)
    if not detected or detected[0] not in ALLOWED_IMAGE_TYPES:
        raise CaptureError(f"Screenshot {path} is not a supported image")
    return data, detected[1]
