"""Shared pytest fixtures."""

import pytest

from jobaggr.config.models import AdvancedConfig, SourceConfig
from jobaggr.logging.context import clear_log_context


@pytest.fixture(autouse=True)
def clean_log_context():
    """Clear logging context before and after each test."""
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Pin the optional environment variables to known values."""
    monkeypatch.setenv("LOG_LEVEL", "INFO")
    monkeypatch.setenv("ENVIRONMENT", "test")


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every environment variable the aggregator reads."""
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("ENVIRONMENT", raising=False)


@pytest.fixture
def advanced_config():
    """Create default advanced config."""
    return AdvancedConfig(
        http_request_timeout=30,
        user_agent="JobAggregator/1.0",
        max_jobs_per_source=1000,
    )


@pytest.fixture
def greenhouse_config():
    """Create Greenhouse source config."""
    return SourceConfig(name="Example Corp", type="greenhouse", identifier="examplecorp")


@pytest.fixture
def lever_config():
    """Create Lever source config."""
    return SourceConfig(name="Example Corp", type="lever", identifier="examplecorp")


@pytest.fixture
def ashby_config():
    """Create Ashby source config."""
    return SourceConfig(name="Example Corp", type="ashby", identifier="example-org-id")
