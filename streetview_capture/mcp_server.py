"""MCP server exposing the Street View capture tool."""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Any, Dict

from mcp.server.fastmcp import FastMCP

from .capture import run_capture
from .config import CaptureConfig
from .errors import InputError
from .models import WorkItem

logger = logging.getLogger("streetview_capture.mcp")
logger.setLevel(logging.ERROR)

mcp = FastMCP(name="streetview-capture")


@mcp.tool()
async def capture(address: str = "", url: str = "") -> Dict[str, Any]:
    """Take a Street View screenshot of an address or Google Maps URL and return its metadata."""
    if bool(address) == bool(url):
        raise InputError("Provide exactly one of address or url")
    item = WorkItem(address=address or None, url=url or None)

    with tempfile.TemporaryDirectory(prefix="streetview-capture-mcp-") as tmp_dir:
        config = CaptureConfig(output_root=Path(tmp_dir))
        result = await run_capture(config, item)
    if result is None:
        raise RuntimeError(f"Street View not found for {address or url}")
    return result.to_metadata()


def main() -> None:
    """Entry point for running the MCP server."""
    logging.basicConfig(level=logging.ERROR)
    mcp.run()


if __name__ == "__main__":
    main()
