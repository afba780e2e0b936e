#!/usr/bin/env python3
"""
Track Generation Example

This example demonstrates how to:
1. Generate tracks for a seed with both strategies
2. Use (seed, variant) pairs for reproducible tracks
3. Inspect the winning candidate and its polyline
4. Fall back to a rounded rectangle when the search comes back empty

Run with: python generate_tracks.py --seed 1000 --variants 3
"""

import argparse
import logging
import sys
from pathlib import Path

from looptrack import DriverConfig, Strategy, TrackSearchDriver, fallback_rounded_rectangle
from looptrack.rng import fnv1a32, to_int32


def parse_seed(value: str) -> int:
    """Accept an integer seed or hash any other text into one."""
    try:
        return int(value, 0)
    except ValueError:
        return to_int32(fnv1a32(value))


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Generate closed racing loops",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Default 32x32 arena, seed 1000, both strategies
    python generate_tracks.py

    # Three variants of a named scenario with the tile builder
    python generate_tracks.py --seed "monaco" --variants 3 --strategy tile

    # Run attempts on four threads with verbose logging
    python generate_tracks.py --workers 4 --log-level DEBUG
        """
    )

    parser.add_argument(
        "--seed",
        type=parse_seed,
        default=1000,
        help="Scenario seed; non-numeric text is hashed (default: 1000)"
    )
    parser.add_argument(
        "--variants",
        type=int,
        default=1,
        metavar="N",
        help="Number of track variants to generate (default: 1)"
    )
    parser.add_argument(
        "--half-width",
        type=float,
        default=32.0,
        help="Arena half width (default: 32)"
    )
    parser.add_argument(
        "--half-height",
        type=float,
        default=32.0,
        help="Arena half height (default: 32)"
    )
    parser.add_argument(
        "--strategy",
        choices=["snapped", "tile", "both"],
        default="both",
        help="Loop builder to run (default: both)"
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Threads used for attempts (default: 1)"
    )
    parser.add_argument(
        "--export",
        type=Path,
        help="Write each polyline to <export>/<strategy>_<seed>_<variant>.csv"
    )

    # Logging
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Log level (default: INFO)"
    )

    return parser.parse_args()


def setup_logging(level: str):
    """Configure logging."""
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def print_result(result):
    """Print the winning candidate and its polyline."""
    print(f"\nStrategy: {result.strategy.value}  seed={result.seed}  variant={result.variant}")
    print(f"Valid candidates: {len(result.candidates)} / {result.attempts}")

    if not result.found:
        print("No loop found")
        return

    quality = result.best.quality
    polyline = result.polyline
    print(f"Best attempt: {result.best.attempt}  score={quality.score:.2f}")
    print(f"Segments: {quality.segment_count}  turns: {quality.turn_count}")
    print(f"Long straights: {quality.long_straights}")
    print(f"Hairpin: {quality.has_hairpin}  chicane: {quality.has_chicane}")
    print(f"Aspect ratio: {quality.aspect_ratio:.2f}")
    print(f"Samples: {polyline.sample_count}  length: {polyline.length:.1f}")
    print(f"Is closed: {polyline.is_closed}")


def export_polyline(directory: Path, name: str, polyline):
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{name}.csv"
    polyline.export_csv(path)
    print(f"Exported: {path}")


def main() -> int:
    args = parse_args()
    setup_logging(args.log_level)

    driver = TrackSearchDriver(DriverConfig(max_workers=max(1, args.workers)))
    if args.strategy == "both":
        strategies = [Strategy.SNAPPED, Strategy.TILE]
    else:
        strategies = [Strategy.parse(args.strategy)]

    print("=" * 60)
    print("Track Generation")
    print("=" * 60)

    for variant in range(args.variants):
        for strategy in strategies:
            result = driver.search(
                args.half_width, args.half_height, args.seed, variant, strategy
            )
            print_result(result)

            polyline = result.polyline
            if polyline is None:
                polyline = fallback_rounded_rectangle(args.half_width, args.half_height)
                print(f"Using fallback track ({polyline.length:.1f} units)")

            if args.export:
                name = f"{strategy.value}_{args.seed}_{variant}"
                export_polyline(args.export, name, polyline)

    print("\n" + "=" * 60)
    print("Track generation complete!")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
