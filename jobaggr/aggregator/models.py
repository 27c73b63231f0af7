"""Data models for one aggregation call."""

from dataclasses import dataclass, field
from typing import List, Optional

from jobaggr.domain.models import Job


@dataclass(frozen=True)
class SourceOutcome:
    """
    What one source produced during a fetch.

    Exactly one of ``jobs`` and ``error`` is meaningful: ``error`` is set when
    the source raised, otherwise ``jobs`` holds its records in source order.

    Attributes:
        index: Registration position of the source, used for reassembly
        source_name: Label of the source, for logging
        jobs: Records returned by the source
        error: Exception raised by the source
        duration_seconds: Wall-clock time the source took
    """

    index: int
    source_name: str
    jobs: List[Job] = field(default_factory=list)
    error: Optional[BaseException] = None
    duration_seconds: float = 0.0

    @property
    def failed(self) -> bool:
        return self.error is not None
