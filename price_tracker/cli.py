"""
Price Tracker - CLI.

============================================================
RESPONSIBILITY
============================================================
Command-line interface for the commodity price tracker.

- Resolves prices once and prints them, or
- Keeps refreshing and prints every new snapshot

============================================================
USAGE
============================================================
python -m price_tracker.cli
python -m price_tracker.cli --commodity Gold --commodity Copper --json
python -m price_tracker.cli --watch --cache-file ~/.cache/prices.json
python -m price_tracker.cli --examples

Operational defaults may come from the environment or a .env file:
PRICE_TRACKER_CACHE_FILE, PRICE_TRACKER_LOG_LEVEL, PRICE_TRACKER_LOG_FORMAT.
Command-line flags win.

============================================================
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import List, Optional

from dotenv import load_dotenv

from core.config import (
    CACHE_TTL_SECONDS,
    COMMODITIES,
    REFRESH_INTERVAL_SECONDS,
    RefreshConfig,
    TrackerConfig,
    category_for,
)
from core.logging_config import setup_logging
from price_cache.cache import ExpiringPriceCache
from price_cache.storage import InMemoryStorage, JsonFileStorage, KeyValueStorage
from price_sources.registry import create_default_registry
from price_tracker.formatters import format_change, format_last_updated, format_price
from price_tracker.models import TrackerSnapshot
from price_tracker.tracker import PriceTracker
from resolution_engine.engine import ResolutionEngine
from synthetic_data.generator import get_all_example_records, is_example_record


logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LOG_FORMATS = ["json", "text"]


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="commodity-prices",
        description="Resolve commodity prices from live sources with cached and example fallbacks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                                  # All commodities, once
  %(prog)s -c Gold -c Silver --json         # Selected commodities as JSON
  %(prog)s --watch --cache-file prices.json # Keep refreshing, durable cache
        """
    )

    # --------------------------------------------------------
    # Selection
    # --------------------------------------------------------
    parser.add_argument(
        "--commodity", "-c",
        action="append",
        metavar="NAME",
        help="Commodity to track (repeatable, default: all)",
    )

    parser.add_argument(
        "--list-commodities",
        action="store_true",
        help="List known commodities and exit",
    )

    parser.add_argument(
        "--examples",
        action="store_true",
        help="Print example data without contacting any source",
    )

    # --------------------------------------------------------
    # Refresh Options
    # --------------------------------------------------------
    refresh_group = parser.add_argument_group("Refresh Options")

    refresh_group.add_argument(
        "--watch", "-w",
        action="store_true",
        help="Keep running and refresh on an interval",
    )

    refresh_group.add_argument(
        "--interval",
        type=float,
        default=REFRESH_INTERVAL_SECONDS,
        metavar="SECONDS",
        help=f"Refresh interval in watch mode (default: {REFRESH_INTERVAL_SECONDS})",
    )

    # --------------------------------------------------------
    # Cache Options
    # --------------------------------------------------------
    cache_group = parser.add_argument_group("Cache Options")

    cache_group.add_argument(
        "--cache-file",
        type=str,
        default=os.getenv("PRICE_TRACKER_CACHE_FILE"),
        metavar="PATH",
        help="Persist the cache to a JSON file (default: in-memory)",
    )

    cache_group.add_argument(
        "--cache-ttl",
        type=float,
        default=CACHE_TTL_SECONDS,
        metavar="SECONDS",
        help=f"Cache time-to-live (default: {CACHE_TTL_SECONDS})",
    )

    # --------------------------------------------------------
    # Output Options
    # --------------------------------------------------------
    output_group = parser.add_argument_group("Output Options")

    output_group.add_argument(
        "--json",
        action="store_true",
        help="Print snapshots as JSON",
    )

    # --------------------------------------------------------
    # Logging Options
    # --------------------------------------------------------
    logging_group = parser.add_argument_group("Logging Options")

    logging_group.add_argument(
        "--log-level",
        type=str,
        choices=LOG_LEVELS,
        default=os.getenv("PRICE_TRACKER_LOG_LEVEL", "WARNING").upper(),
        help="Logging level (default: WARNING)",
    )

    logging_group.add_argument(
        "--log-format",
        type=str,
        choices=LOG_FORMATS,
        default=os.getenv("PRICE_TRACKER_LOG_FORMAT", "text").lower(),
        help="Logging format (default: text)",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version="%(prog)s 1.0.0",
    )

    return parser


# ============================================================
# CLI VALIDATION
# ============================================================

def validate_args(args: argparse.Namespace) -> List[str]:
    """
    Validate CLI arguments.

    Returns:
        List of validation errors
    """
    errors = []

    for name in args.commodity or []:
        if name not in COMMODITIES:
            errors.append(f"Unknown commodity: {name!r}")

    if args.interval < 1:
        errors.append("--interval must be at least 1 second")

    if args.cache_ttl <= 0:
        errors.append("--cache-ttl must be positive")

    # Environment defaults bypass argparse choices
    if args.log_level not in LOG_LEVELS:
        errors.append(f"Invalid log level: {args.log_level!r}")

    if args.log_format not in LOG_FORMATS:
        errors.append(f"Invalid log format: {args.log_format!r}")

    return errors


# ============================================================
# CLI CONFIGURATION BUILDER
# ============================================================

def build_config(args: argparse.Namespace) -> TrackerConfig:
    """Build tracker configuration from CLI arguments."""
    config = TrackerConfig(
        refresh=RefreshConfig(
            interval_seconds=args.interval,
            commodities=list(args.commodity or COMMODITIES),
        ),
    )
    config.cache.ttl_seconds = args.cache_ttl
    return config


def build_tracker(args: argparse.Namespace) -> PriceTracker:
    """Wire storage, cache, sources, engine and tracker."""
    config = build_config(args)

    storage: KeyValueStorage
    if args.cache_file:
        storage = JsonFileStorage(args.cache_file)
    else:
        storage = InMemoryStorage()

    cache = ExpiringPriceCache.from_config(config.cache, storage=storage)
    registry = create_default_registry(request_config=config.request)
    engine = ResolutionEngine(registry, cache, retry_config=config.retry)

    return PriceTracker(engine, config=config.refresh)


# ============================================================
# OUTPUT
# ============================================================

def render_snapshot(snapshot: TrackerSnapshot, as_json: bool = False) -> str:
    """Render a snapshot as text lines or a JSON document."""
    if as_json:
        return json.dumps(snapshot.to_dict(), indent=2)

    lines = []
    for name, record in snapshot.records.items():
        change_text, _ = format_change(record.change, record.change_percent)
        marker = " [example]" if is_example_record(record) else ""
        lines.append(
            f"{name:<12} {format_price(record.price, record.unit):>24}  "
            f"{change_text:<22} {category_for(name):<18} {record.source}{marker}"
        )

    footer = f"Last update: {format_last_updated(snapshot.last_update)}"
    if snapshot.error:
        footer += f" (error: {snapshot.error})"
    lines.append(footer)
    return "\n".join(lines)


# ============================================================
# MAIN ENTRY POINT
# ============================================================

async def async_main(args: argparse.Namespace) -> int:
    """
    Async main entry point.

    Returns:
        Exit code
    """
    tracker = build_tracker(args)

    try:
        if not args.watch:
            snapshot = await tracker.refresh()
            print(render_snapshot(snapshot, args.json))
            return 0

        def show(snapshot: TrackerSnapshot) -> None:
            if not snapshot.is_loading and snapshot.records:
                print(render_snapshot(snapshot, args.json))
                print()

        tracker.subscribe(show)
        await tracker.initialize()
        await asyncio.Event().wait()
        return 0

    except Exception as e:
        logging.error(f"Fatal error: {e}", exc_info=True)
        return 1
    finally:
        await tracker.close()


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Command line arguments (default: sys.argv[1:])

    Returns:
        Exit code
    """
    load_dotenv()

    parser = create_parser()
    args = parser.parse_args(argv)

    if args.list_commodities:
        for name in COMMODITIES:
            print(f"{name:<12} {category_for(name)}")
        return 0

    errors = validate_args(args)
    if errors:
        for error in errors:
            print(f"Error: {error}", file=sys.stderr)
        return 1

    setup_logging(args.log_level, args.log_format)

    if args.examples:
        examples = get_all_example_records()
        snapshot = TrackerSnapshot(
            records={name: examples[name] for name in args.commodity or COMMODITIES},
        )
        print(render_snapshot(snapshot, args.json))
        return 0

    try:
        return asyncio.run(async_main(args))
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
        return 130


# ============================================================
# MODULE EXECUTION
# ============================================================

if __name__ == "__main__":
    sys.exit(main())
