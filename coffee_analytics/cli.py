"""
Command line entry point.

Usage:
    coffee-reports list
    coffee-reports show profit_concentration
    coffee-reports export --output-dir reports --format parquet
    coffee-reports --source data/sales_enriched.csv grain
"""

import argparse
import sys
from typing import List, Optional

import polars as pl
import structlog

from coffee_analytics.config import Settings, get_settings
from coffee_analytics.config.logging import configure_logging
from coffee_analytics.reporting.catalog import UnknownReportError
from coffee_analytics.serving.snapshot import SNAPSHOT_LOAD_ERRORS, load_snapshot

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="coffee-reports",
        description="Coffee shop sales KPI reports",
    )
    parser.add_argument(
        "--source",
        help="Path to the sales export (overrides DATASET_SOURCE_PATH)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (default: from settings)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("list", help="List available reports")

    show = commands.add_parser("show", help="Print one report")
    show.add_argument("name", help="Report name")
    show.add_argument("--rows", type=int, default=50, help="Rows to print (default: 50)")

    export = commands.add_parser("export", help="Write reports to disk")
    export.add_argument("--output-dir", default=None, help="Output directory")
    export.add_argument("--format", dest="fmt", choices=["csv", "parquet"], default=None)
    export.add_argument("--report", action="append", dest="reports", help="Limit to a report (repeatable)")

    return parser


def _resolve_settings(args: argparse.Namespace, base: Settings) -> Settings:
    if not args.source:
        return base
    dataset = base.dataset.model_copy(update={"source_path": args.source, "database_url": None})
    return base.model_copy(update={"dataset": dataset})


def main(argv: Optional[List[str]] = None, settings: Optional[Settings] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = _resolve_settings(args, settings or get_settings())
    configure_logging(args.log_level or settings.monitoring.log_level, settings.monitoring.log_format)

    try:
        snapshot = load_snapshot(settings)
    except SNAPSHOT_LOAD_ERRORS as e:
        logger.error("Could not load sales snapshot", source=settings.dataset.source_name, error=str(e))
        print(f"error: {e}", file=sys.stderr)
        return 1

    catalog = snapshot.catalog

    if args.command == "list":
        for name, description in catalog.describe().items():
            print(f"{name:<26} {description}")
        return 0

    if args.command == "show":
        try:
            frame = catalog.build(args.name)
        except UnknownReportError as e:
            print(f"error: {e}", file=sys.stderr)
            return 2
        with pl.Config(tbl_rows=args.rows, tbl_cols=-1, tbl_width_chars=200):
            print(frame)
        return 0

    try:
        results = catalog.export(args.output_dir, args.fmt, args.reports)
    except UnknownReportError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    for result in results:
        print(f"{result.name}: {result.rows} rows -> {result.output_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
