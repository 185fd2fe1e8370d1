"""Exceptions raised while capturing Street View screenshots."""

from __future__ import annotations

from typing import Any, Dict, Optional


class CaptureError(Exception):
    """Base class for capture failures."""

    def to_annotation(self) -> Dict[str, Any]:
        return {"error": str(self)}


class InputError(CaptureError):
    """No address or URL could be resolved from the given input."""


class MissingDependencyError(CaptureError):
    """A work item lacks an annotation that capture depends on."""


class ResourceError(CaptureError):
    """The browser or page could not be created or closed."""


class StreetViewNotFound(CaptureError):
    """The viewer never reached panorama mode for the requested location."""

    def __init__(
        self,
        message: str = "Street View not found",
        address: Optional[str] = None,
        url: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.address = address
        self.url = url

    def to_annotation(self) -> Dict[str, Any]:
        data = super().to_annotation()
        if self.address:
            data["address"] = self.address
        if self.url:
            data["url"] = self.url
        return data
