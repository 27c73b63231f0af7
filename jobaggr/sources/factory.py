"""Factory functions for instantiating job sources from configuration."""

from typing import Dict, List, Type

from jobaggr.config.models import AdvancedConfig, AppConfig, SourceConfig
from jobaggr.logging import get_logger

from .ashby import AshbySource
from .base import HTTPJobSource, JobSource
from .exceptions import SourceConfigurationError
from .greenhouse import GreenhouseSource
from .lever import LeverSource

logger = get_logger(__name__, component="source")

SOURCE_CLASSES: Dict[str, Type[HTTPJobSource]] = {
    "greenhouse": GreenhouseSource,
    "lever": LeverSource,
    "ashby": AshbySource,
}


def get_source(source_config: SourceConfig, advanced_config: AdvancedConfig) -> HTTPJobSource:
    """Instantiate the source for one configured company board.

    Args:
        source_config: Source configuration with ATS type and identifier
        advanced_config: Advanced configuration with timeout, user-agent and max_jobs

    Returns:
        Source bound to ``source_config``

    Raises:
        SourceConfigurationError: If the ATS type is not supported or config is invalid

    Example:
        >>> source = get_source(
        ...     SourceConfig(name="Example", type="greenhouse", identifier="example"),
        ...     AdvancedConfig(),
        ... )
        >>> jobs = source.fetch_jobs(FetchContext(), "python", "Remote")
    """
    ats_type = str(getattr(source_config.type, "value", source_config.type)).lower()
    source_class = SOURCE_CLASSES.get(ats_type)

    if source_class is None:
        supported_types = ", ".join(sorted(SOURCE_CLASSES))
        raise SourceConfigurationError(
            f"Unknown ATS type: {source_config.type}. Supported types: {supported_types}"
        )

    logger.debug(
        "Creating source instance",
        extra={
            "event": "source.created",
            "ats_type": ats_type,
            "source_name": source_config.name,
            "source_class": source_class.__name__,
        },
    )

    try:
        return source_class(
            source_config,
            timeout=advanced_config.http_request_timeout,
            user_agent=advanced_config.user_agent,
            max_jobs=advanced_config.max_jobs_per_source,
        )
    except SourceConfigurationError:
        raise
    except Exception as e:
        raise SourceConfigurationError(f"Failed to create {ats_type} source: {e}") from e


def build_sources(app_config: AppConfig) -> List[JobSource]:
    """Build every enabled source, preserving configured order."""
    return [
        get_source(source_config, app_config.advanced)
        for source_config in app_config.get_enabled_sources()
    ]
