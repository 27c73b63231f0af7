"""Job sources: the capability the aggregator fans out to, and its ATS variants.

Use the factory to build sources from configuration:
    from jobaggr.sources import build_sources
    sources = build_sources(app_config)

Or implement JobSource directly for any other backend:
    class MySource(JobSource):
        def fetch_jobs(self, ctx, query, location): ...
"""

from .ashby import AshbySource
from .base import HTTPJobSource, JobSource, matches_location, matches_query
from .exceptions import (
    SourceConfigurationError,
    SourceError,
    SourceHTTPError,
    SourceResponseError,
    SourceTimeoutError,
)
from .factory import SOURCE_CLASSES, build_sources, get_source
from .greenhouse import GreenhouseSource
from .lever import LeverSource

__all__ = [
    # Capability and base
    "JobSource",
    "HTTPJobSource",
    "matches_query",
    "matches_location",
    # Factory
    "SOURCE_CLASSES",
    "get_source",
    "build_sources",
    # Sources
    "GreenhouseSource",
    "LeverSource",
    "AshbySource",
    # Exceptions
    "SourceError",
    "SourceHTTPError",
    "SourceTimeoutError",
    "SourceResponseError",
    "SourceConfigurationError",
]
