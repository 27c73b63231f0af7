"""Configuration management module for the job aggregator."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config, validate_config_file
from .models import (
    AdvancedConfig,
    AggregationMode,
    AggregatorConfig,
    AppConfig,
    ATSType,
    LogFormat,
    LoggingConfig,
    LogLevel,
    SourceConfig,
)

__all__ = [
    # Loader functions
    "load_config",
    "validate_config_file",
    "load_environment_config",
    # Configuration models
    "AppConfig",
    "SourceConfig",
    "AggregatorConfig",
    "LoggingConfig",
    "AdvancedConfig",
    "EnvironmentConfig",
    # Enums
    "ATSType",
    "AggregationMode",
    "LogLevel",
    "LogFormat",
    # Exceptions
    "ConfigurationError",
]
