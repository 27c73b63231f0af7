#!/usr/bin/env python3
"""Sample search harness for end-to-end validation.

This script provides a manual way to exercise the job aggregator without
running pytest. It can operate in two modes:

1. Fixture mode (default): Every enabled source serves deterministic jobs from a YAML file
2. Real endpoint mode: Connects to live ATS APIs (requires network access)

Usage:
    # Run with fixtures (no network required)
    python scripts/run_sample_search.py --query python --location remote

    # Run with real endpoints (requires network and valid config)
    SAMPLE_SEARCH_REAL_RUN=1 python scripts/run_sample_search.py --config config.yaml --query python

    # Sequential dispatch with a tight deadline
    python scripts/run_sample_search.py --query python --mode sequential --timeout 2
"""

import argparse
import os
import sys
import time
from datetime import datetime
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

from jobaggr.aggregator import JobAggregator
from jobaggr.config.loader import load_config
from jobaggr.config.models import AggregationMode
from jobaggr.context import FetchContext, FetchContextError
from jobaggr.logging.config import configure_logging
from tests.helpers.fixture_source import FixtureSource


def print_header(title: str):
    """Print a formatted section header."""
    width = 80
    print("\n" + "=" * width)
    print(f" {title}")
    print("=" * width + "\n")


def print_jobs_table(jobs, duration: float):
    """Print the combined result as a table, in result order."""
    print_header("Search Results")

    rows = [(str(i), job.source, job.company, job.title, job.location) for i, job in enumerate(jobs, 1)]
    headers = ("#", "Source", "Company", "Title", "Location")
    widths = [max([len(h)] + [len(row[col]) for row in rows]) for col, h in enumerate(headers)]

    print("┌" + "┬".join("─" * (w + 2) for w in widths) + "┐")
    print("│" + "│".join(f" {h:<{w}} " for h, w in zip(headers, widths)) + "│")
    print("├" + "┼".join("─" * (w + 2) for w in widths) + "┤")
    for row in rows:
        print("│" + "│".join(f" {cell:<{w}} " for cell, w in zip(row, widths)) + "│")
    print("└" + "┴".join("─" * (w + 2) for w in widths) + "┘")

    print(f"\nTotal jobs: {len(jobs)}")
    print(f"Duration (seconds): {duration:.2f}")


def main():
    """Main entry point for sample search harness."""
    parser = argparse.ArgumentParser(
        description="Run a sample search for end-to-end validation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("tests/fixtures/search_config.yaml"),
        help="Path to configuration file (default: tests/fixtures/search_config.yaml)",
    )
    parser.add_argument(
        "--fixtures",
        type=Path,
        default=Path("tests/fixtures/search_fixture.yaml"),
        help="Path to fixtures YAML file (default: tests/fixtures/search_fixture.yaml)",
    )
    parser.add_argument("--query", default="", help="Search terms (default: match everything)")
    parser.add_argument("--location", default="", help="Location filter (default: any)")
    parser.add_argument(
        "--mode",
        default=None,
        choices=[mode.value for mode in AggregationMode],
        help="Dispatch mode (default: from config)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Search deadline in seconds (default: from config)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (default: INFO)",
    )

    args = parser.parse_args()

    load_dotenv()

    use_real_endpoints = os.environ.get("SAMPLE_SEARCH_REAL_RUN", "0") == "1"

    print_header("Job Aggregator - Sample Search Harness")

    print(f"Configuration file: {args.config}")
    print(f"Query: {args.query!r}  Location: {args.location!r}")
    print(f"Log level: {args.log_level}")

    if use_real_endpoints:
        print("\n⚠️  REAL ENDPOINT MODE ENABLED")
        print("   The aggregator will make actual HTTP requests to ATS APIs.")
        print("   This may be rate-limited or consume API quota.")
        response = input("\nContinue? [y/N]: ")
        if response.lower() != "y":
            print("Aborted.")
            return 1
    else:
        print(f"Fixture mode: {args.fixtures}")
        print("\nUsing fixture data (no network requests will be made)")

    if not args.config.exists():
        print(f"\n❌ Error: Configuration file not found: {args.config}")
        return 1

    if not use_real_endpoints and not args.fixtures.exists():
        print(f"\n❌ Error: Fixture file not found: {args.fixtures}")
        print("   Run with SAMPLE_SEARCH_REAL_RUN=1 to use real endpoints instead.")
        return 1

    try:
        print("\n📋 Loading configuration...")
        app_config, _ = load_config(args.config)

        configure_logging(
            level=args.log_level,
            format_type=app_config.logging.format,
            environment="validation",
        )

        enabled_sources = app_config.get_enabled_sources()
        print(f"✓ Loaded {len(app_config.sources)} sources")
        print(f"✓ {len(enabled_sources)} sources enabled")

        mode = args.mode or app_config.aggregator.mode
        timeout = args.timeout or app_config.aggregator.timeout_seconds

        if use_real_endpoints:
            aggregator = JobAggregator.from_config(app_config)
            aggregator.mode = AggregationMode(mode)
        else:
            aggregator = JobAggregator(
                [
                    FixtureSource(s.name, s.identifier, args.fixtures, label=s.type.title())
                    for s in enabled_sources
                ],
                mode=mode,
                max_workers=app_config.aggregator.max_workers,
            )

        print(f"\n🚀 Searching {len(aggregator.sources)} sources ({aggregator.mode.value}, {timeout:g}s deadline)...")
        print(f"   Started at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")

        started = time.monotonic()
        with FetchContext().with_timeout(timeout) as ctx:
            jobs = aggregator.fetch_jobs(ctx, args.query, args.location)
        duration = time.monotonic() - started

        print(f"   Completed at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")

        print_jobs_table(jobs, duration)
        return 0

    except FetchContextError as e:
        print(f"\n⏱️  Search cancelled: {e}")
        return 3
    except Exception as e:
        print(f"\n❌ Search failed: {e}")
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
