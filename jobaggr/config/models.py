"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .duration import DurationParseError, parse_duration, validate_duration_range


class ATSType(str, Enum):
    """Supported ATS (Applicant Tracking System) types."""

    GREENHOUSE = "greenhouse"
    LEVER = "lever"
    ASHBY = "ashby"


class AggregationMode(str, Enum):
    """How the aggregator dispatches a search to its sources."""

    CONCURRENT = "concurrent"
    SEQUENTIAL = "sequential"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class SourceConfig(BaseModel):
    """Configuration for a single job source."""

    name: str = Field(..., min_length=1, description="Human-readable name for the source")
    type: ATSType = Field(..., description="ATS type (greenhouse, lever, ashby)")
    identifier: str = Field(
        ..., min_length=1, description="Company identifier used in API endpoint"
    )
    enabled: bool = Field(True, description="Whether to search this source")

    @field_validator("name", "identifier")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        """Strip whitespace from string fields."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("Field cannot be empty or whitespace-only")
        return stripped

    model_config = {"use_enum_values": True}


class AggregatorConfig(BaseModel):
    """How a search is fanned out and how long it may take."""

    mode: AggregationMode = Field(
        AggregationMode.CONCURRENT, description="Dispatch mode (concurrent or sequential)"
    )
    timeout: str = Field("2m", description="Deadline for one whole search")
    max_workers: Optional[int] = Field(
        None, ge=1, le=64, description="Cap on worker threads (None = one per source)"
    )

    # Computed field
    timeout_seconds: Optional[int] = None

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: str) -> str:
        """Validate the search timeout is parseable and between 1 second and 1 hour."""
        try:
            validate_duration_range(parse_duration(v), min_seconds=1, max_seconds=3600)
            return v
        except DurationParseError as e:
            raise ValueError(str(e)) from e

    @model_validator(mode="after")
    def compute_timeout_seconds(self):
        """Store the parsed timeout for easy access."""
        self.timeout_seconds = parse_duration(self.timeout)
        return self

    model_config = {"use_enum_values": True}


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class AdvancedConfig(BaseModel):
    """Advanced runtime settings."""

    http_request_timeout: int = Field(
        30, ge=5, le=300, description="Request timeout for ATS API calls (seconds)"
    )
    user_agent: str = Field(
        "JobAggregator/1.0",
        min_length=1,
        description="User-Agent string for HTTP requests",
    )
    max_jobs_per_source: int = Field(
        1000, ge=0, description="Maximum jobs to return per source (0 = unlimited)"
    )

    @field_validator("user_agent")
    @classmethod
    def strip_user_agent(cls, v: str) -> str:
        """Strip whitespace from user agent."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("user_agent cannot be empty")
        return stripped


class AppConfig(BaseModel):
    """Root configuration object for the job aggregator.

    The order of ``sources`` is the order of the combined search result.
    An empty source list is valid and yields an empty search.
    """

    sources: List[SourceConfig] = Field(
        default_factory=list, description="Ordered list of job sources to search"
    )
    aggregator: AggregatorConfig = Field(
        default_factory=AggregatorConfig, description="Fan-out settings"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    advanced: AdvancedConfig = Field(
        default_factory=AdvancedConfig, description="Advanced runtime settings"
    )

    @model_validator(mode="after")
    def validate_unique_sources(self):
        """Reject the same (type, identifier) pair registered twice."""
        seen_sources = set()
        for source in self.sources:
            source_key = (source.type, source.identifier)
            if source_key in seen_sources:
                raise ValueError(
                    f"Duplicate source: {source.type}/{source.identifier} appears multiple times"
                )
            seen_sources.add(source_key)
        return self

    def get_enabled_sources(self) -> List[SourceConfig]:
        """Get enabled sources, in configured order."""
        return [source for source in self.sources if source.enabled]
