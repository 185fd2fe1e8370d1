"""Clients for the POI document store and the asset upload service."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence

import requests

from .config import (
    ADDRESS_KIND,
    PENDING_SENTINEL,
    POI_COLLECTION,
    SCREENSHOT_KIND,
    StoreConfig,
)
from .errors import MissingDependencyError

logger = logging.getLogger("streetview_capture")


class AnnotationStore(Protocol):
    def find_pending(self, city: str, limit: int) -> List[Dict[str, Any]]:
        ...

    def get_annotations(self, item_id: str, kinds: Sequence[str]) -> List[Dict[str, Any]]:
        ...

    def add_annotation(self, item_id: str, kind: str, data: Dict[str, Any]) -> None:
        ...


class AssetUploader(Protocol):
    def upload_file(
        self,
        namespace: str,
        item_id: str,
        kind: str,
        data: bytes,
        filename: str,
        content_type: str,
    ) -> Dict[str, Any]:
        ...


def pending_filter(city: str) -> Dict[str, Any]:
    return {"city": city, f"annotations.{SCREENSHOT_KIND}": PENDING_SENTINEL}


def poi_id_of(document: Dict[str, Any]) -> str:
    value = document.get("id", document.get("_id"))
    if value is None:
        raise MissingDependencyError("POI document has no id")
    return str(value)


def lookup_address(store: AnnotationStore, poi_id: str) -> str:
    """Return the address annotated on a POI."""
    documents = store.get_annotations(poi_id, [ADDRESS_KIND])
    for document in documents:
        if document.get("kind", ADDRESS_KIND) != ADDRESS_KIND:
            continue
        address = (document.get("data") or {}).get("address")
        if address:
            return address
    raise MissingDependencyError(f"No address annotation found for POI {poi_id}")


def _session(config: StoreConfig) -> requests.Session:
    session = requests.Session()
    if config.token:
        session.headers["Authorization"] = f"Bearer {config.token}"
    return session


class HttpAnnotationStore:
    """Document store reached over its HTTP API."""

    def __init__(self, config: StoreConfig, session: Optional[requests.Session] = None) -> None:
        self.config = config
        self.session = session or _session(config)

    def _url(self, path: str) -> str:
        return f"{self.config.api_url}/{path.lstrip('/')}"

    def find_pending(self, city: str, limit: int) -> List[Dict[str, Any]]:
        resp = self.session.post(
            self._url(f"collections/{POI_COLLECTION}/find"),
            json={"filter": pending_filter(city), "limit": limit},
            timeout=self.config.request_timeout,
        )
        resp.raise_for_status()
        return resp.json()

    def get_annotations(self, item_id: str, kinds: Sequence[str]) -> List[Dict[str, Any]]:
        resp = self.session.get(
            self._url(f"annotations/{item_id}"),
            params={"kind": list(kinds)},
            timeout=self.config.request_timeout,
        )
        resp.raise_for_status()
        return resp.json()

    def add_annotation(self, item_id: str, kind: str, data: Dict[str, Any]) -> None:
        resp = self.session.post(
            self._url(f"annotations/{item_id}"),
            json={"kind": kind, "data": data},
            timeout=self.config.request_timeout,
        )
        resp.raise_for_status()
        logger.debug("Stored %s annotation for %s", kind, item_id)


class HttpAssetUploader:
    """Object storage upload endpoint."""

    def __init__(self, config: StoreConfig, session: Optional[requests.Session] = None) -> None:
        self.config = config
        self.session = session or _session(config)

    def upload_file(
        self,
        namespace: str,
        item_id: str,
        kind: str,
        data: bytes,
        filename: str,
        content_type: str,
    ) -> Dict[str, Any]:
        resp = self.session.post(
            f"{self.config.upload_url}/uploads/{namespace}/{item_id}/{kind}",
            files={"file": (filename, data, content_type)},
            timeout=self.config.request_timeout,
        )
        resp.raise_for_status()
        uploaded = resp.json()
        if not uploaded.get("url"):
            raise ValueError(f"Upload of {filename} returned no URL")
        logger.info("Uploaded %s to %s", filename, uploaded["url"])
        return uploaded
