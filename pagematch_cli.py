#!/usr/bin/env python3
"""Entrypoint for matching pages between two versions of a scanned document.

Hashes both page directories, indexes the old pages and prints which new
pages match an old one, which are new, and which old pages went missing.
"""
import argparse
import logging
import sys
from pathlib import Path

from page_match import config


def setup_logging(verbose: bool):
    """Progress goes to stderr so stdout carries only the page mapping."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        stream=sys.stderr,
    )
    # Silence chatty libraries
    logging.getLogger("PIL").setLevel(logging.WARNING)


def distance_arg(value: str) -> int:
    try:
        d = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid distance: {value!r}") from None
    if not 0 <= d <= config.MAX_DISTANCE:
        raise argparse.ArgumentTypeError(f"distance must be within 0..{config.MAX_DISTANCE}, got {d}")
    return d


def positive_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from None
    if n <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {n}")
    return n


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Match pages between two versions of a scanned document")
    p.add_argument("-o", "--old", type=Path, required=True, help="Directory holding the old version's pages")
    p.add_argument("-n", "--new", type=Path, required=True, help="Directory holding the new version's pages")
    p.add_argument("-d", "--distance", type=distance_arg, required=True,
                   help="Maximum fingerprint distance for two pages to match (inclusive)")
    p.add_argument("--workers", type=positive_int, default=str(config.WORKERS),
                   help="Number of hashing threads per directory")
    p.add_argument("--position-divisor", type=positive_int, default=str(config.POSITION_DIVISOR),
                   help="Page drift that costs one distance unit when breaking near-ties")
    p.add_argument("--csv", type=Path, default=None, help="Also write the mapping to this CSV file")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    setup_logging(args.verbose)

    # Lazy imports to keep --help responsive
    from page_match import indexer, matcher, pipeline, report
    from page_match.exceptions import PageMatchError

    try:
        old = pipeline.hash_images(args.old, workers=args.workers)
        new = pipeline.hash_images(args.new, workers=args.workers)
    except PageMatchError as e:
        logging.error(f"Hashing failed: {e}")
        sys.exit(1)

    idx = indexer.build_index(old)
    result = matcher.match_pages(new, idx, args.distance, position_divisor=args.position_divisor)

    report.print_report(result, args.old, args.new)
    if args.csv is not None:
        report.write_csv(result, args.old, args.new, args.csv)
        logging.info(f"CSV report: {args.csv}")


if __name__ == "__main__":
    main()
