#!/usr/bin/env python
"""Build the joined data behind one dashboard chart.

This script loads the configured datasets, joins the requested series on a
common year axis and writes the result (plus KPI summary and annotation
layout) for inspection.

Usage:
    # Spain vs EU vs Catalonia, R&D expenditure as % of GDP
    python scripts/build_chart_data.py

    # Custom series: key=dataset:entity[:sector[:unit]]
    python scripts/build_chart_data.py \\
        --series spain=researchers_europe:ES:business \\
        --series eu=researchers_europe:EU27_2020:business \\
        --focal spain --reference eu

    # Restrict the year axis and write JSON
    python scripts/build_chart_data.py --years 2013-2023 --output output/chart.json

    # Verbose output for debugging
    python scripts/build_chart_data.py --verbose
"""

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional

# Add package to path (allows running without installation)
SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
sys.path.insert(0, str(PROJECT_ROOT))

from spain_rd_dashboard.config import get_settings  # noqa: E402
from spain_rd_dashboard.models import ChartState  # noqa: E402
from spain_rd_dashboard.orchestration import ChartOutput, ChartSeries, DashboardPipeline  # noqa: E402
from spain_rd_dashboard.transformers import year_range  # noqa: E402
from spain_rd_dashboard.utils import format_change, format_number, setup_logging  # noqa: E402

DEFAULT_SERIES = [
    "country=gdp_consolidado:ES",
    "eu=gdp_consolidado:EU27_2020",
    "community=rd_communities:Cataluña",
]


def parse_series(spec: str) -> ChartSeries:
    """Parse 'key=dataset:entity[:sector[:unit]]' into a ChartSeries.

    Raises:
        argparse.ArgumentTypeError: If the declaration is malformed
    """
    key, sep, rest = spec.partition("=")
    parts = rest.split(":") if sep else []
    if not key or len(parts) < 2:
        raise argparse.ArgumentTypeError(
            f"Invalid series {spec!r}; expected key=dataset:entity[:sector[:unit]]"
        )
    return ChartSeries(
        key=key.strip(),
        dataset=parts[0].strip(),
        entity=parts[1].strip(),
        sector=parts[2].strip() if len(parts) > 2 and parts[2].strip() else "total",
        unit=parts[3].strip() if len(parts) > 3 and parts[3].strip() else None,
    )


def parse_years(text: Optional[str]) -> Optional[List[int]]:
    """Parse '2013-2023' or '2019,2021,2023' into a list of years."""
    if not text:
        return None
    if "-" in text:
        start, end = text.split("-", 1)
        return year_range(int(start), int(end))
    return [int(y) for y in text.split(",") if y.strip()]


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(
        description="Build joined chart data for the Spain R&D dashboard",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                                        # Default comparison chart
  %(prog)s --series es=patents_europe:ES::NR      # Patent applications, Spain
  %(prog)s --years 2015-2023 --language en        # English summary
  %(prog)s --config custom.yaml                   # Use custom config
        """,
    )

    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default="config/config.yaml",
        help="Path to configuration file (default: config/config.yaml)",
    )

    parser.add_argument(
        "--series",
        "-s",
        action="append",
        type=parse_series,
        help="Chart series as key=dataset:entity[:sector[:unit]] (repeatable)",
    )

    parser.add_argument("--focal", type=str, help="Series key summarized in the KPI tiles")
    parser.add_argument("--reference", type=str, help="Series key used as comparison baseline")

    parser.add_argument(
        "--years",
        "-y",
        type=str,
        help="Year axis as a range ('2013-2023') or list ('2019,2021')",
    )

    parser.add_argument(
        "--output",
        "-o",
        type=str,
        default="output/chart_data.csv",
        help="Output file (.csv for the joined table, .json for the full chart)",
    )

    parser.add_argument(
        "--language",
        choices=["es", "en"],
        default="es",
        help="Language of the printed summary (default: es)",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging (DEBUG level)",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be done without loading any data",
    )

    return parser.parse_args()


def print_banner() -> None:
    """Print welcome banner."""
    print("=" * 70)
    print(" " * 18 + "Spain R&D Dashboard - Chart Data")
    print("=" * 70)
    print()


def print_summary(chart: ChartOutput, pipeline: DashboardPipeline, series: List[ChartSeries], language: str) -> None:
    """Print the KPI summary and the annotation layout of a chart."""
    summary = chart.summary
    print()
    print("=" * 70)
    print(f"  State: {chart.state.value}")
    print("=" * 70)
    if summary.year is not None:
        print(f"  Year:            {summary.year}")
        print(f"  Value:           {format_number(summary.value, language, 2)}")
        print(f"  YoY change:      {format_change(summary.yoy)}")
        if summary.rank is not None:
            print(f"  Rank:            {summary.rank} / {summary.rank_total}")
        if summary.reference_value is not None:
            print(f"  Reference:       {format_number(summary.reference_value, language, 2)}")
            print(f"  Peer difference: {format_change(summary.peer_difference)}")

    names = {
        item.key: pipeline.resolver.display_name(item.entity, language) for item in series
    }
    for point in chart.annotations:
        moved = " (moved)" if point.displaced else ""
        print(f"  {names.get(point.series_key, point.series_key):<25} y={point.adjusted_y:.0f}{moved}")
    print()


def write_output(chart: ChartOutput, output: Path) -> None:
    """Write the joined table (CSV) or the whole chart (JSON)."""
    output.parent.mkdir(parents=True, exist_ok=True)
    if output.suffix.lower() == ".json":
        payload = {
            "state": chart.state.value,
            "rows": [asdict(row) for row in chart.rows],
            "summary": asdict(chart.summary),
            "annotations": [asdict(point) for point in chart.annotations],
            "ranking": [asdict(entry) for entry in chart.ranking],
            "errors": chart.errors,
        }
        with open(output, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
    else:
        chart.to_frame().to_csv(output, encoding="utf-8")


def run(args: argparse.Namespace, logger: logging.Logger) -> int:
    """Load datasets and build the requested chart.

    Args:
        args: Parsed command-line arguments
        logger: Logger instance

    Returns:
        Exit code (0 for success, 1 for failure, 2 for empty or unavailable data)
    """
    try:
        logger.info(f"Loading configuration from: {args.config}")
        settings = get_settings(args.config)
        setup_logging(settings.logging, verbose=args.verbose)

        logger.info(f"Project: {settings.project['name']} v{settings.project['version']}")

        series = args.series or [parse_series(spec) for spec in DEFAULT_SERIES]
        datasets = sorted({item.dataset for item in series})
        unknown = [name for name in datasets if name not in settings.datasets]
        if unknown:
            logger.error(f"Unknown datasets: {unknown}. Configured: {sorted(settings.datasets)}")
            return 1

        if args.dry_run:
            logger.info("DRY RUN MODE - No data will be loaded")
            for item in series:
                logger.info(f"Would chart {item.key}: {item.entity} from {item.dataset} ({item.sector})")
            return 0

        print_banner()

        pipeline = DashboardPipeline(settings)
        pipeline.load(datasets)

        chart = pipeline.build_chart(
            series,
            years=parse_years(args.years),
            focal_key=args.focal,
            reference_key=args.reference,
        )
        print_summary(chart, pipeline, series, args.language)

        if chart.state == ChartState.UNAVAILABLE:
            for name, reason in chart.errors.items():
                logger.error(f"Data unavailable for {name}: {reason}")
            return 2
        if chart.state == ChartState.NO_DATA:
            logger.warning("No data for this selection")
            return 2

        output = Path(args.output)
        write_output(chart, output)
        logger.info(f"Chart data written to {output}")
        return 0

    except FileNotFoundError as e:
        logger.error(f"Configuration error: {e}")
        logger.error("Please ensure config/config.yaml and config/lookups.yaml exist")
        return 1

    except Exception as e:
        logger.exception(f"Chart build failed with error: {e}")
        return 1


def main() -> int:
    """Main entry point.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    args = parse_args()
    logger = setup_logging(verbose=args.verbose, name="build_chart_data")

    try:
        return run(args, logger)
    except KeyboardInterrupt:
        logger.warning("\nInterrupted by user")
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())
