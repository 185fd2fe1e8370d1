"""Command-line entry point for Street View capture."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Iterable, Sequence

from .batch import run_batch
from .capture import resolve_target, run_capture
from .config import DEFAULT_DIMENSIONS, CaptureConfig, StoreConfig
from .errors import CaptureError, InputError
from .store import HttpAnnotationStore, HttpAssetUploader

logger = logging.getLogger("streetview_capture.cli")


def _ensure_command_prefix(argv: Sequence[str], commands: Iterable[str]) -> Sequence[str]:
    if not argv:
        return argv
    first = argv[0]
    if first in commands or first in ("-h", "--help"):
        return argv
    return ("shot", *argv)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--output",
        default="screenshots",
        type=Path,
        help="Directory where screenshots and metadata should be written",
    )
    parser.add_argument(
        "--width",
        type=int,
        default=DEFAULT_DIMENSIONS[0],
        help="Viewport width in pixels",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=DEFAULT_DIMENSIONS[1],
        help="Viewport height in pixels",
    )
    parser.add_argument(
        "--wait",
        type=float,
        default=4.0,
        help="Seconds to wait after each UI step (twice this after loading)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Navigation timeout in seconds",
    )
    parser.add_argument(
        "--headful",
        action="store_true",
        help="Show the browser window",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Take Street View screenshots of addresses or Google Maps URLs.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    shot_parser = subparsers.add_parser(
        "shot", help="Capture a single GeoJSON feature or Google Maps URL"
    )
    shot_parser.add_argument("-f", "--feature", help="GeoJSON feature with an address property")
    shot_parser.add_argument("-u", "--url", help="Google Maps URL")
    _add_common_arguments(shot_parser)

    batch_parser = subparsers.add_parser(
        "batch", help="Capture pending POIs of a city and store annotations"
    )
    batch_parser.add_argument("city", help="City identifier of the POIs to process")
    batch_parser.add_argument(
        "--limit",
        type=int,
        default=1,
        help="Maximum number of POIs to process",
    )
    _add_common_arguments(batch_parser)

    argv = list(sys.argv[1:] if argv is None else argv)
    argv = list(_ensure_command_prefix(argv, subparsers.choices.keys()))
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> CaptureConfig:
    return CaptureConfig(
        output_root=Path(args.output).resolve(),
        dimensions=(args.width, args.height),
        timeout_unit=args.wait,
        navigation_timeout=args.timeout,
        headless=not args.headful,
    )


def _run_shot(args: argparse.Namespace) -> int:
    try:
        item = resolve_target(args.feature, args.url)
    except InputError as exc:
        logger.error("%s", exc)
        return 1

    config = build_config(args)
    try:
        result = asyncio.run(run_capture(config, item))
    except CaptureError as exc:
        logger.error("Capture failed: %s", exc)
        return 1
    except Exception:  # pylint: disable=broad-except
        logger.exception("Unexpected error capturing %s", item.address or item.url)
        return 1
    return 0 if result else 1


def _run_batch(args: argparse.Namespace) -> int:
    try:
        store_config = StoreConfig.from_env()
    except ValueError as exc:
        logger.error("%s", exc)
        return 1

    config = build_config(args)
    store = HttpAnnotationStore(store_config)
    uploader = HttpAssetUploader(store_config)
    try:
        asyncio.run(
            run_batch(
                config,
                store,
                uploader,
                args.city,
                limit=args.limit,
                namespace=store_config.upload_namespace,
            )
        )
    except Exception:  # pylint: disable=broad-except
        logger.exception("Batch for %s failed", args.city)
        return 1
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    if args.command == "shot":
        return _run_shot(args)
    return _run_batch(args)


if __name__ == "__main__":
    sys.exit(main())
