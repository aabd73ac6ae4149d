"""
LeekDuck events unified CLI.

Single entry point for a scrape run.

Usage
-----
# Scraping
python cli.py scrape events            # listing + date feed → data/events.min.json
python cli.py scrape details           # event pages → data/temp/*.json

# Pipeline
python cli.py combine                  # merge details, flatten, write per-type files
python cli.py combine --keep-temp      # leave data/temp/ in place

# Everything
python cli.py all                      # scrape events + details, then combine

# Dev / debug
python cli.py debug stats              # show event counts per type
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from utils.logger import setup_logging

logger = logging.getLogger("cli")


# ---------------------------------------------------------------------------
# Sub-command handlers
# ---------------------------------------------------------------------------


def _scrape_config(args: argparse.Namespace):
    from src.scraper.base import ScrapeConfig

    data_dir = Path(args.data_dir)
    return ScrapeConfig(
        output_dir=data_dir,
        temp_dir=Path(args.temp_dir) if args.temp_dir else data_dir / "temp",
        cache_dir=data_dir / "scraper_cache",
        use_cache=args.use_cache,
        calls_per_second=args.rps,
    )


def cmd_scrape_events(args: argparse.Namespace) -> None:
    from src.scraper.leekduck import EventsScraper

    EventsScraper(config=_scrape_config(args)).scrape_all()


def cmd_scrape_details(args: argparse.Namespace) -> None:
    from src.scraper.leekduck import EventDetailScraper

    scraper = EventDetailScraper(config=_scrape_config(args), max_workers=args.workers)
    scraper.scrape_all()


def cmd_combine(args: argparse.Namespace) -> None:
    """Merge detail documents into the base dataset and write outputs."""
    from src.pipeline.combine import EventCombiner

    combiner = EventCombiner(data_dir=Path(args.data_dir), temp_dir=args.temp_dir)
    combiner.combine(cleanup_temp=not args.keep_temp)


def cmd_all(args: argparse.Namespace) -> None:
    """Run every step sequentially."""
    cmd_scrape_events(args)
    cmd_scrape_details(args)
    cmd_combine(args)


def cmd_debug_stats(args: argparse.Namespace) -> None:
    """Print a summary of the per-type output files."""
    types_dir = Path(args.data_dir) / "eventTypes"
    if not types_dir.is_dir():
        print(f"No eventTypes directory at {types_dir}; run combine first.")
        return
    print("\n📁 Events per type")
    total = 0
    for type_file in sorted(types_dir.glob("*.min.json")):
        with open(type_file, encoding="utf-8") as fh:
            count = len(json.load(fh))
        total += count
        print(f"  {type_file.name.removesuffix('.min.json'):30s} {count:>5} events")
    print(f"  {'total':30s} {total:>5} events")


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    root = argparse.ArgumentParser(
        prog="leekduck-events",
        description="LeekDuck Pokémon GO event scraper, unified CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    root.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    # ---- shared / default paths ----
    root.add_argument("--data-dir", default="data", metavar="DIR")
    root.add_argument("--temp-dir", default=None, metavar="DIR", help="Defaults to DATA_DIR/temp")
    root.add_argument("--rps", type=float, default=2.0, help="Requests per second")
    root.add_argument("--use-cache", action="store_true", help="Reuse cached HTTP responses")
    root.add_argument("--workers", type=int, default=5, help="Concurrent detail page fetches")
    root.add_argument("--keep-temp", action="store_true", help="Do not delete the temp directory")

    subparsers = root.add_subparsers(dest="command", required=True)

    # ================================================================
    # scrape
    # ================================================================
    scrape_p = subparsers.add_parser("scrape", help="Fetch data from LeekDuck")
    scrape_sub = scrape_p.add_subparsers(dest="source", required=True)

    scrape_sub.add_parser("events", help="Listing page + date feed").set_defaults(
        func=cmd_scrape_events
    )
    scrape_sub.add_parser("details", help="Per-event detail pages").set_defaults(
        func=cmd_scrape_details
    )

    # ================================================================
    # combine / all
    # ================================================================
    subparsers.add_parser("combine", help="Merge, flatten and partition events").set_defaults(
        func=cmd_combine
    )
    subparsers.add_parser("all", help="scrape events + scrape details + combine").set_defaults(
        func=cmd_all
    )

    # ================================================================
    # debug
    # ================================================================
    debug_p = subparsers.add_parser("debug", help="Development / inspection tools")
    debug_sub = debug_p.add_subparsers(dest="tool", required=True)
    debug_sub.add_parser("stats", help="Print events per type").set_defaults(func=cmd_debug_stats)

    return root


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    from src.pipeline.exceptions import PipelineError

    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        args.func(args)
    except PipelineError as exc:
        logger.error(f"ERROR: {exc}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
