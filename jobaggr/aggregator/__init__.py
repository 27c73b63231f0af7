"""Aggregation engine: fan-out to sources, ordered fan-in, all-or-nothing errors."""

from .models import SourceOutcome
from .service import JobAggregator

__all__ = ["JobAggregator", "SourceOutcome"]
