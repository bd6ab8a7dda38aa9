#!/usr/bin/env python3
"""Command-line front end: load an image, grayscale it on the GPU, save it.

Usage:
    wgpu-gray photo.jpg                 # writes photo_gray.png
    wgpu-gray photo.jpg out.png --verify
    wgpu-gray --list-adapters

Exit codes: 0 success, 1 pipeline failure or bad input, 2 no GPU available.
"""

import sys
import argparse
import logging
from pathlib import Path

import numpy as np

from wgpu_gray.config import GrayscaleConfig, POWER_PREFERENCES, configure_logging
from wgpu_gray.device import DeviceSession, list_adapters
from wgpu_gray.errors import DeviceUnavailable, GrayscaleError
from wgpu_gray.imaging import load_surface, save_surface
from wgpu_gray.kernel import grayscale_reference
from wgpu_gray.pipeline import grayscale

logger = logging.getLogger("wgpu_gray")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_NO_DEVICE = 2


def build_parser():
    parser = argparse.ArgumentParser(
        prog="wgpu-gray",
        description="Convert an image to grayscale with a wgpu compute shader.",
    )
    parser.add_argument("input", nargs="?", help="image file to convert")
    parser.add_argument("output", nargs="?", help="output path (default: <input>_gray.png)")
    parser.add_argument("--max-size", type=int, default=None,
                        help="scale down so the longest side is at most this many pixels")
    parser.add_argument("--power-preference", choices=POWER_PREFERENCES, default=None)
    parser.add_argument("--verify", action="store_true",
                        help="compare the GPU result against the host reference")
    parser.add_argument("--list-adapters", action="store_true",
                        help="list GPU adapters and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def default_output(input_path):
    path = Path(input_path)
    return str(path.with_name(f"{path.stem}_gray.png"))


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = GrayscaleConfig.from_env(
            max_size=args.max_size,
            power_preference=args.power_preference,
            log_level="DEBUG" if args.verbose else None,
        )
    except ValueError as e:
        parser.error(str(e))
    configure_logging(config.log_level)

    if args.list_adapters:
        try:
            adapters = list_adapters()
        except DeviceUnavailable as e:
            print(f"GPU compute is not available: {e}", file=sys.stderr)
            return EXIT_NO_DEVICE
        for i, summary in adapters:
            print(f"  [{i}] {summary}")
        return EXIT_OK

    if not args.input:
        parser.error("an input image is required")
    output = args.output or default_output(args.input)

    try:
        surface = load_surface(args.input, config.max_size)
        logger.info(f"Loaded {args.input} as {surface.width}x{surface.height}")
        with DeviceSession.acquire(config) as session:
            result = grayscale(surface, session=session)
    except DeviceUnavailable as e:
        print(f"GPU compute is not available on this system: {e}", file=sys.stderr)
        return EXIT_NO_DEVICE
    except GrayscaleError as e:
        print(f"Grayscale conversion failed: {e}", file=sys.stderr)
        return EXIT_FAILURE

    if args.verify:
        expected = grayscale_reference(surface.pixels)
        mismatches = int(np.count_nonzero(np.any(result.pixels != expected, axis=-1)))
        if mismatches:
            print(f"FAIL: {mismatches}/{surface.numel()} pixels differ from reference", file=sys.stderr)
            return EXIT_FAILURE
        print(f"All {surface.numel()} pixels verified against reference")

    save_surface(result, output)
    print(f"Saved {output}")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
