"""promise-map CLI — run the ordinary-map vs PromiseMap comparison."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from . import config
from .harness import format_report, run_all, run_profile_threaded
from .source import ProfileSource

# ---------------------------------------------------------------------------
# Logging (configurable via PROMISEMAP_VERBOSE)
# ---------------------------------------------------------------------------
logger = logging.getLogger("PromiseMap")
logger.setLevel(logging.DEBUG if config.VERBOSE else logging.INFO)
_handler = logging.StreamHandler(sys.stderr)
_handler.setFormatter(logging.Formatter("[%(name)s %(levelname)s] %(message)s"))
logger.addHandler(_handler)


def _positive_int(value: str) -> int:
    n = int(value)
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {n}")
    return n


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="promisemap",
        description="Compare an ordinary map with a PromiseMap under a burst of lookups",
    )
    parser.add_argument(
        "--requests",
        "-n",
        type=_positive_int,
        default=config.REQUEST_COUNT,
        help=f"Number of contiguous lookups per run (default: {config.REQUEST_COUNT})",
    )
    parser.add_argument(
        "--key",
        default=config.DEFAULT_KEY,
        help=f"Cache key to look up (default: {config.DEFAULT_KEY})",
    )
    parser.add_argument(
        "--threaded",
        action="store_true",
        help="Also run the lock-guarded cache from a thread pool",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        dest="as_json",
        help="Print reports as JSON instead of banners",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        default=config.VERBOSE,
        help="Enable verbose/debug logging",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point — runs every profile and prints the reports."""
    args = parse_args(argv)
    if args.verbose:
        logger.setLevel(logging.DEBUG)

    reports = asyncio.run(run_all(request_count=args.requests, key=args.key))
    if args.threaded:
        reports.append(
            run_profile_threaded(
                source=ProfileSource(), request_count=args.requests, key=args.key
            )
        )

    if args.as_json:
        print(json.dumps([r.model_dump(mode="json") for r in reports], indent=2))
    else:
        for report in reports:
            print(format_report(report))
    return 0


if __name__ == "__main__":
    sys.exit(main())
