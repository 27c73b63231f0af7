"""Test helper utilities for job aggregator tests."""

from .fixture_source import (
    BlockingSource,
    FailingSource,
    FixtureSource,
    StaticSource,
    load_fixture_jobs,
    make_job,
    make_jobs,
)

__all__ = [
    "BlockingSource",
    "FailingSource",
    "FixtureSource",
    "StaticSource",
    "load_fixture_jobs",
    "make_job",
    "make_jobs",
]
