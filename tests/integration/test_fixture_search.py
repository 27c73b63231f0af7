"""End-to-end search tests over fixture-backed sources.

Runs the aggregator against sources that serve jobs from
tests/fixtures/search_fixture.yaml, without network access:

- Combined result ordering across sources and dispatch modes
- Query/location filtering inside each source
- All-or-nothing failure when one source breaks
- Deadline expiry while a source is still working
- Structured logging with per-fetch and per-source context
"""

import io
import json
import logging
from pathlib import Path

import pytest

from jobaggr.aggregator import JobAggregator
from jobaggr.config.models import AggregationMode
from jobaggr.context import FetchContext, FetchTimeoutError
from jobaggr.logging.config import configure_logging
from jobaggr.sources.exceptions import SourceHTTPError
from tests.helpers import FailingSource, FixtureSource, StaticSource

FIXTURE_PATH = Path(__file__).parent.parent / "fixtures" / "search_fixture.yaml"

MODES = [AggregationMode.CONCURRENT, AggregationMode.SEQUENTIAL]


class SlowFixtureSource(FixtureSource):
    """FixtureSource that waits (cancellably) before answering."""

    def __init__(self, *args, delay: float = 0.0, **kwargs):
        super().__init__(*args, **kwargs)
        self.delay = delay

    def fetch_jobs(self, ctx, query, location):
        if ctx.wait(self.delay):
            ctx.raise_if_cancelled()
        return super().fetch_jobs(ctx, query, location)


@pytest.fixture
def acme():
    return FixtureSource("Acme", "acme", FIXTURE_PATH, label="Greenhouse")


@pytest.fixture
def globex():
    return FixtureSource("Globex", "globex", FIXTURE_PATH, label="Lever")


@pytest.fixture
def log_stream():
    """Route JSON logs into a buffer for the duration of a test."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    stream = io.StringIO()

    configure_logging(level="DEBUG", format_type="json", environment="test", stream=stream)
    yield stream

    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.mark.parametrize("mode", MODES)
def test_search_combines_sources_in_order(mode, acme, globex):
    """Test a filtered search returns acme's matches, then globex's."""
    aggregator = JobAggregator([acme, globex], mode=mode)

    jobs = aggregator.fetch_jobs(FetchContext(), "python", "remote")

    assert [(job.source, job.id) for job in jobs] == [
        ("Greenhouse", "a-1"),
        ("Lever", "g-1"),
        ("Lever", ""),
    ]
    assert jobs[0].company == "Acme"
    assert jobs[0].salary == "$150k - $180k"


def test_search_order_independent_of_completion(acme):
    """Test a slow first source still comes first in the result."""
    slow_globex = SlowFixtureSource("Globex", "globex", FIXTURE_PATH, delay=0.2)
    aggregator = JobAggregator([slow_globex, acme])

    jobs = aggregator.fetch_jobs(FetchContext(), "python", "")

    assert [job.id for job in jobs] == ["g-1", "", "a-1", "a-3"]


@pytest.mark.parametrize("mode", MODES)
def test_search_without_matches(mode, acme, globex):
    """Test a query nothing matches yields an empty list, not an error."""
    aggregator = JobAggregator([acme, globex], mode=mode)

    assert aggregator.fetch_jobs(FetchContext(), "cobol", "") == []


@pytest.mark.parametrize("mode", MODES)
def test_one_failing_source_voids_search(mode, acme, globex):
    """Test a broken board fails the whole search with its own error."""
    error = SourceHTTPError("HTTP 502: Bad Gateway", status_code=502, url="https://example.com")
    aggregator = JobAggregator([acme, FailingSource("Initech", error), globex], mode=mode)

    with pytest.raises(SourceHTTPError) as exc_info:
        aggregator.fetch_jobs(FetchContext(), "python", "")

    assert exc_info.value is error


def test_deadline_expires_during_search(acme):
    """Test a search that outlives its deadline reports the timeout."""
    slow = SlowFixtureSource("Globex", "globex", FIXTURE_PATH, delay=5)
    aggregator = JobAggregator([acme, slow])

    with FetchContext().with_timeout(0.1) as ctx:
        with pytest.raises(FetchTimeoutError):
            aggregator.fetch_jobs(ctx, "python", "")


def test_repeated_searches_are_independent(acme, globex):
    """Test the same aggregator serves consecutive searches."""
    aggregator = JobAggregator([acme, globex])

    first = aggregator.fetch_jobs(FetchContext(), "python", "berlin")
    second = aggregator.fetch_jobs(FetchContext(), "frontend", "")

    assert [job.id for job in first] == ["a-3"]
    assert [job.id for job in second] == ["a-2"]


def test_search_logs_carry_fetch_and_source_context(log_stream, acme):
    """Test worker-thread logs include the fetch id and source fields."""
    aggregator = JobAggregator([acme, StaticSource("Empty")])

    aggregator.fetch_jobs(FetchContext(), "python", "remote")

    records = [json.loads(line) for line in log_stream.getvalue().splitlines()]
    by_event = {}
    for record in records:
        by_event.setdefault(record.get("event"), []).append(record)

    started = by_event["aggregator.fetch.started"][0]
    completed = by_event["aggregator.fetch.completed"][0]
    succeeded = by_event["aggregator.source.succeeded"]

    assert started["source_count"] == 2
    assert started["query"] == "python"
    assert started["location"] == "remote"
    assert completed["job_count"] == 1
    assert completed["fetch_id"] == started["fetch_id"]
    assert sorted(r["source_name"] for r in succeeded) == ["Acme", "Empty"]
    assert {r["fetch_id"] for r in succeeded} == {started["fetch_id"]}
    assert all(r["component"] == "aggregator" for r in succeeded)
    assert all(r["service"] == "job-aggregator" for r in records)
