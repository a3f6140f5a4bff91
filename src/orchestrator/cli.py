"""
Review Analysis CLI
===================

Command-line interface for the review analysis engine.

Commands:
    analyze     - Analyze a CSV or JSON export of reviews
    catalog     - Show the pattern catalog in use

Usage:
    python -m src.orchestrator.cli analyze --input reviews.csv
    python -m src.orchestrator.cli analyze --input reviews.json --json
    python -m src.orchestrator.cli analyze --input reviews.csv --output analysis.json
    python -m src.orchestrator.cli catalog --json
"""

import argparse
import csv
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List

from ..reviews.analysis_config import catalog_path
from ..reviews.pattern_catalog import default_catalog, load_catalog
from ..reviews.review_models import FullAnalysis, Layer, ReviewAnalysisError
from .analysis_pipeline import AnalysisPipeline, ProgressUpdate
from .logging_config import setup_logging

logger = logging.getLogger(__name__)


def load_records(path: Path) -> List[Dict]:
    """Read review rows from a .csv or .json file."""
    if path.suffix.lower() == ".json":
        data = json.loads(path.read_text(encoding="utf-8"))
        if isinstance(data, dict):
            data = data.get("reviews", [])
        if not isinstance(data, list):
            raise ValueError(f"{path} must contain a list of review objects")
        return data

    with path.open(newline="", encoding="utf-8-sig") as f:
        return [dict(row) for row in csv.DictReader(f)]


def print_summary(analysis: FullAnalysis, top: int = 5):
    """Human-readable digest of an analysis."""
    breakdown = analysis.segment_breakdown

    print("=" * 60)
    print("REVIEW ANALYSIS")
    print("=" * 60)
    print(f"Catalog version: {analysis.catalog_version}")
    print(f"Total reviews: {analysis.total_reviews:,}")
    if analysis.skipped_records:
        print(f"Skipped records: {analysis.skipped_records:,}")
    print()

    for product, product_analysis in analysis.products.items():
        print(f"{product} ({product_analysis.total_reviews:,} reviews, "
              f"avg {product_analysis.average_rating}/5, "
              f"5★ {product_analysis.five_star_percent}%)")
        for title, stats in (
            ("Pains", product_analysis.pain),
            ("Benefits", product_analysis.benefits),
            ("Transformations", product_analysis.transformation),
        ):
            if stats:
                listed = ", ".join(f"{s.label} {s.percentage}%" for s in stats[:top])
                print(f"  {title}: {listed}")
        print()

    print("Segments:")
    for profile in breakdown.segments:
        if profile.total_reviews == 0:
            continue
        print(f"  [{profile.layer.value[:3]}] {profile.label:28} "
              f"{profile.total_reviews:>6,} ({profile.percentage}%)")
    print()
    print(f"Unsegmented: {breakdown.unsegmented.count:,} ({breakdown.unsegmented.percentage}%)")
    print(f"Multi-segment: {breakdown.multi_segment.count:,} ({breakdown.multi_segment.percentage}%)")

    if breakdown.cross_segment_overlap:
        print()
        print("Top identity x motivation overlaps:")
        for overlap in breakdown.cross_segment_overlap[:top]:
            print(f"  {overlap.identity} x {overlap.motivation}: {overlap.review_count:,} "
                  f"({overlap.percent_of_identity}% of identity)")


def cmd_analyze(args):
    """Analyze a review export."""
    path = Path(args.input)
    if not path.exists():
        print(f"ERROR: Input file not found: {path}")
        return 1

    try:
        records = load_records(path)
        pipeline = AnalysisPipeline.from_env()

        def on_progress(update: ProgressUpdate):
            logger.debug(f"{update.percent:3d}% {update.stage}")

        analysis = pipeline.analyze_records(records, on_progress=on_progress)

    except ReviewAnalysisError as e:
        print(f"ERROR: {e}")
        return 1
    except (OSError, ValueError) as e:
        print(f"ERROR: Cannot read {path}: {e}")
        return 1

    if args.output:
        Path(args.output).write_text(
            json.dumps(analysis.to_dict(), indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        logger.info(f"Analysis written to {args.output}")

    if args.json:
        print(json.dumps(analysis.to_dict(), indent=2, ensure_ascii=False))
    else:
        print_summary(analysis, top=args.top)

    return 0


def cmd_catalog(args):
    """Show the pattern catalog."""
    try:
        path = catalog_path()
        catalog = load_catalog(path) if path else default_catalog()
    except ReviewAnalysisError as e:
        print(f"ERROR: {e}")
        return 1

    if args.json:
        print(json.dumps(catalog.to_dict(), indent=2))
        return 0

    print("=" * 60)
    print(f"PATTERN CATALOG {catalog.version}")
    print("=" * 60)
    for layer in Layer:
        definitions = catalog.categories(layer)
        print(f"{layer.value} ({len(definitions)}):")
        for definition in definitions:
            print(f"  - {definition.name:28} {len(definition.rules)} rule(s)")
    print()
    print(f"Product lines: {', '.join(catalog.product_lines)}")
    return 0


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="review-analysis",
        description="Deterministic review analysis & segmentation",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Emit logs as JSON lines",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # analyze command
    analyze_parser = subparsers.add_parser("analyze", help="Analyze a review export")
    analyze_parser.add_argument(
        "--input", "-i",
        required=True,
        help="CSV (handle, review/body, rating, date[, product]) or JSON list",
    )
    analyze_parser.add_argument(
        "--output", "-o",
        help="Write the full analysis as JSON to this file",
    )
    analyze_parser.add_argument(
        "--top",
        type=int,
        default=5,
        help="Entries per list in the summary (default: 5)",
    )
    analyze_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full analysis as JSON",
    )

    # catalog command
    catalog_parser = subparsers.add_parser("catalog", help="Show the pattern catalog")
    catalog_parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )

    args = parser.parse_args()
    setup_logging("DEBUG" if args.verbose else "WARNING", json_output=args.log_json)

    if args.command is None:
        parser.print_help()
        return 1

    commands = {
        "analyze": cmd_analyze,
        "catalog": cmd_catalog,
    }

    handler = commands.get(args.command)
    if handler:
        return handler(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
