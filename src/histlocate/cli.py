#!/usr/bin/env python3
"""CLI interface for histlocate."""

import argparse
import logging
import sys
from pathlib import Path

from .config import Config, HistogramConfig, ReferenceSpec
from .exceptions import ConfigurationError, FormatError
from .locator import run

logger = logging.getLogger(__name__)

DEFAULT_BOX = (60, 40, 100, 80)


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the histlocate command."""
    parser = argparse.ArgumentParser(
        description="Locate an object in query images by color histogram template matching",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    parser.add_argument("reference", type=str,
                       help="Reference image containing the object")
    parser.add_argument("queries", type=str, nargs="+",
                       help="Query image(s) to search")
    parser.add_argument("-o", "--output", type=str, required=True,
                       help="Output image (one query) or output directory (several queries)")

    parser.add_argument("--box", type=int, nargs=4, default=list(DEFAULT_BOX),
                       metavar=("X", "Y", "W", "H"),
                       help="Object bounding box in the reference image")
    parser.add_argument("--template", nargs=5, action="append", default=[],
                       metavar=("IMAGE", "X", "Y", "W", "H"),
                       help="Additional labeled reference image (repeatable)")
    parser.add_argument("--bins", type=int, default=8,
                       help="Histogram bins per color channel")
    parser.add_argument("--templates", type=str, default=None,
                       help="Load previously saved templates (matched before reference images)")
    parser.add_argument("--save-templates", type=str, default=None,
                       help="Save the template set to this JSON file")
    parser.add_argument("--workers", type=int, default=1,
                       help="Number of parallel workers for several queries")
    parser.add_argument("-v", "--verbose", action="store_true",
                       help="Enable debug logging")
    return parser


def _parse_template(values: list[str]) -> ReferenceSpec:
    image, *box = values
    try:
        x, y, w, h = (int(v) for v in box)
    except ValueError:
        msg = f"--template box must be four integers, got {box}"
        raise ValueError(msg) from None
    return ReferenceSpec(image_path=Path(image), box=(x, y, w, h))


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for histlocate.

    Parses command-line arguments and runs the localization pipeline.
    Exits with status 1 on invalid input without writing an output file.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    # Configure logging
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S"
    )

    try:
        references = [ReferenceSpec(image_path=Path(args.reference), box=tuple(args.box))]
        references.extend(_parse_template(values) for values in args.template)

        cfg = Config(
            query_paths=[Path(q) for q in args.queries],
            output_path=Path(args.output),
            references=references,
            histogram=HistogramConfig(bins=args.bins),
            templates_path=Path(args.templates) if args.templates else None,
            save_templates=Path(args.save_templates) if args.save_templates else None,
            num_workers=args.workers,
        )
        results = run(cfg)
    except (FormatError, ConfigurationError, ValueError, OSError) as e:
        logger.error(f"Error: {e}")
        sys.exit(1)

    for query_path, result in zip(cfg.query_paths, results, strict=True):
        x, y, w, h = result.match.box.as_tuple()
        print(f"{query_path}: x={x} y={y} width={w} height={h} "
              f"distance={result.match.distance:.3f}")


if __name__ == "__main__":
    main()
