"""Command-line entry point: run one job search and print the results."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import signal
import sys
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Iterable, Iterator, List, Optional, Tuple

from jobaggr.aggregator import JobAggregator
from jobaggr.config.duration import DurationParseError, parse_duration, validate_duration_range
from jobaggr.config.environment import EnvironmentConfig
from jobaggr.config.exceptions import ConfigurationError
from jobaggr.config.loader import load_config
from jobaggr.config.models import AggregationMode, AppConfig
from jobaggr.context import FetchContext, FetchContextError
from jobaggr.domain.models import Job
from jobaggr.logging import get_logger
from jobaggr.logging.config import configure_logging
from jobaggr.sources.exceptions import SourceConfigurationError

logger = get_logger(__name__, component="cli")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CANCELLED = 3


def load_runtime_config(
    config_path: Optional[Path],
    log_level_override: Optional[str],
    timeout_override: Optional[str] = None,
    mode_override: Optional[str] = None,
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and apply command-line overrides.

    Args:
        config_path: Path to configuration file (None = default lookup)
        log_level_override: Log level from CLI (takes precedence)
        timeout_override: Search timeout from CLI, e.g. "30s"
        mode_override: Aggregation mode from CLI

    Returns:
        Tuple of (AppConfig, EnvironmentConfig); env_config.log_level is resolved

    Raises:
        ConfigurationError: If configuration or an override is invalid
    """
    app_config, env_config = load_config(config_path)

    if timeout_override:
        try:
            seconds = parse_duration(timeout_override)
            validate_duration_range(seconds, min_seconds=1, max_seconds=3600)
        except DurationParseError as e:
            raise ConfigurationError(
                f"Invalid --timeout: {e}",
                fields=["aggregator.timeout"],
                suggestions=[
                    "Use ISO-8601 format (e.g., PT30S) or human-readable (e.g., 30s)",
                    "Ensure the timeout is between 1 second and 1 hour",
                ],
            ) from e
        app_config.aggregator.timeout = timeout_override
        app_config.aggregator.timeout_seconds = seconds

    if mode_override:
        app_config.aggregator.mode = AggregationMode(mode_override).value

    # Log level priority: CLI > Environment > Config
    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level or "INFO"

    return app_config, env_config


def render_jobs(jobs: Iterable[Job], stream: IO[str]) -> int:
    """Write one JSON object per job to ``stream``; return how many were written."""
    count = 0
    for job in jobs:
        stream.write(job.model_dump_json())
        stream.write("\n")
        count += 1
    stream.flush()
    return count


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jobaggr",
        description="Job Aggregator - search every configured job board at once",
    )
    parser.add_argument("--query", "-q", required=True, help="Search terms, e.g. 'python engineer'")
    parser.add_argument(
        "--location", "-l", default="", help="Location filter, e.g. 'Remote' (default: any)"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml, then config/config.yaml)",
    )
    parser.add_argument(
        "--timeout",
        default=None,
        help="Deadline for the whole search, e.g. 30s or PT2M (overrides config)",
    )
    parser.add_argument(
        "--mode",
        default=None,
        choices=[mode.value for mode in AggregationMode],
        help="Dispatch mode (overrides config)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )
    return parser


def main(argv: Optional[List[str]] = None, stdout: Optional[IO[str]] = None) -> int:
    """
    Main entry point for the job aggregator.

    Returns:
        Exit code: 0 success, 1 configuration or source failure, 3 cancelled or timed out
    """
    args = build_parser().parse_args(argv)
    stdout = stdout if stdout is not None else sys.stdout
    start_time = time.monotonic()

    try:
        app_config, env_config = load_runtime_config(
            args.config, args.log_level, args.timeout, args.mode
        )

        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=env_config.environment,
        )

        aggregator = JobAggregator.from_config(app_config)

        logger.info(
            "Configuration loaded",
            extra={
                "event": "config.loaded",
                "source_count": len(app_config.sources),
                "enabled_source_count": len(aggregator.sources),
                "mode": aggregator.mode.value,
                "timeout_seconds": app_config.aggregator.timeout_seconds,
            },
        )

        with FetchContext().with_timeout(app_config.aggregator.timeout_seconds) as ctx:
            with _cancel_on_sigterm(ctx):
                jobs = aggregator.fetch_jobs(ctx, args.query, args.location)

        count = render_jobs(jobs, stdout)
        logger.info(
            f"Search completed: {count} jobs",
            extra={
                "event": "search.completed",
                "job_count": count,
                "duration_seconds": round(time.monotonic() - start_time, 2),
            },
        )
        return EXIT_OK

    except (ConfigurationError, SourceConfigurationError) as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        return EXIT_FAILURE
    except FetchContextError as e:
        print(f"Search cancelled: {e}", file=sys.stderr)
        return EXIT_CANCELLED
    except KeyboardInterrupt:
        print("\nSearch interrupted by user", file=sys.stderr)
        return EXIT_CANCELLED
    except Exception as e:
        # Any source failure voids the whole search
        print(f"Search failed: {e}", file=sys.stderr)
        logger.debug(
            "Search failed",
            extra={"event": "search.failed", "error_type": type(e).__name__},
            exc_info=True,
        )
        return EXIT_FAILURE


@contextmanager
def _cancel_on_sigterm(ctx: FetchContext) -> Iterator[None]:
    """
    Cancel ``ctx`` on SIGTERM while the block runs, then restore the previous handler.

    Off the main thread signal handlers cannot be installed, so the block
    runs without one.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def handler(signum, frame):
        logger.info(
            f"Received signal {signum}, cancelling search",
            extra={"event": "search.signal_received", "signal": signum},
        )
        # Off the signal frame: the context lock is not reentrant
        threading.Thread(target=ctx.cancel, daemon=True).start()

    previous = signal.signal(signal.SIGTERM, handler)
    try:
        yield
    finally:
        # None means the previous handler was not installed from Python
        signal.signal(signal.SIGTERM, previous if previous is not None else signal.SIG_DFL)


if __name__ == "__main__":
    sys.exit(main())
