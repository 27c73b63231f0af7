"""Additional validation utilities for configuration."""

import warnings
from typing import Any, Dict, List


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Check configuration for potential issues and return warnings.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    warning_messages = []

    sources = config_dict.get("sources") or []
    if isinstance(sources, list):
        for source in sources:
            if isinstance(source, dict) and not source.get("enabled", True):
                name = source.get("name", "Unknown")
                warning_messages.append(f"Source '{name}' is disabled and will be skipped")

        enabled = [s for s in sources if isinstance(s, dict) and s.get("enabled", True)]
        if not enabled:
            warning_messages.append("No enabled sources; every search will return no jobs")

    aggregator = config_dict.get("aggregator") or {}
    if isinstance(aggregator, dict):
        max_workers = aggregator.get("max_workers")
        mode = aggregator.get("mode", "concurrent")
        if mode == "sequential" and max_workers is not None:
            warning_messages.append("aggregator.max_workers is ignored in sequential mode")

    advanced = config_dict.get("advanced") or {}
    if isinstance(advanced, dict):
        max_jobs = advanced.get("max_jobs_per_source", 1000)
        if isinstance(max_jobs, int) and max_jobs > 5000:
            warning_messages.append(
                f"Large max_jobs_per_source ({max_jobs}) may cause performance issues"
            )

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """
    Emit warning messages using Python's warnings module.

    Args:
        warning_messages: List of warning messages to emit
    """
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
