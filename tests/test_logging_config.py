"""Tests for logging configuration and formatters."""

import io
import json
import logging
import sys

import pytest

from jobaggr.logging import ComponentLoggerAdapter, get_logger
from jobaggr.logging.config import (
    SERVICE_NAME,
    ContextualFilter,
    JSONFormatter,
    KeyValueFormatter,
    configure_logging,
)
from jobaggr.logging.context import log_context


@pytest.fixture
def logger():
    """Create a test logger with handler for capturing output."""
    test_logger = logging.getLogger("test_logger")
    test_logger.setLevel(logging.DEBUG)
    test_logger.handlers.clear()

    yield test_logger

    test_logger.handlers.clear()


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way pytest configured it."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level

    yield root

    root.handlers[:] = handlers
    root.setLevel(level)


def test_json_formatter_basic(logger):
    """Test JSONFormatter produces valid JSON with mandatory fields."""
    formatter = JSONFormatter()

    record = logger.makeRecord("test", logging.INFO, "test.py", 1, "Test message", (), None)

    log_obj = json.loads(formatter.format(record))

    assert log_obj["level"] == "INFO"
    assert log_obj["message"] == "Test message"
    assert "timestamp" in log_obj


def test_json_formatter_with_extra_fields(logger):
    """Test JSONFormatter includes extra fields."""
    formatter = JSONFormatter()

    record = logger.makeRecord(
        "test",
        logging.INFO,
        "test.py",
        1,
        "Test message",
        (),
        None,
        extra={"event": "aggregator.fetch.completed", "job_count": 42, "flag": True},
    )

    log_obj = json.loads(formatter.format(record))

    assert log_obj["event"] == "aggregator.fetch.completed"
    assert log_obj["job_count"] == 42
    assert log_obj["flag"] is True


def test_json_formatter_stringifies_unknown_types(logger):
    """Test values that are not JSON types are rendered with str()."""
    formatter = JSONFormatter()

    record = logger.makeRecord(
        "test", logging.INFO, "test.py", 1, "msg", (), None, extra={"error": ValueError("bad")}
    )

    assert json.loads(formatter.format(record))["error"] == "bad"


def test_json_formatter_includes_exception(logger):
    """Test exc_info is rendered into the JSON object."""
    formatter = JSONFormatter()

    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = logger.makeRecord(
            "test", logging.ERROR, "test.py", 1, "failed", (), sys.exc_info()
        )

    log_obj = json.loads(formatter.format(record))

    assert "RuntimeError: boom" in log_obj["exc_info"]


def test_contextual_filter_adds_static_fields(logger):
    """Test ContextualFilter adds static service and environment fields."""
    context_filter = ContextualFilter(service="test-service", environment="test")

    record = logger.makeRecord("test", logging.INFO, "test.py", 1, "Test message", (), None)
    context_filter.filter(record)

    assert record.service == "test-service"
    assert record.environment == "test"


def test_contextual_filter_adds_context_fields(logger):
    """Test ContextualFilter adds fields from log context."""
    context_filter = ContextualFilter()

    with log_context(fetch_id="abc123", source_name="acme"):
        record = logger.makeRecord("test", logging.INFO, "test.py", 1, "Test message", (), None)
        context_filter.filter(record)

    assert record.fetch_id == "abc123"
    assert record.source_name == "acme"
    assert record.service == SERVICE_NAME


def test_contextual_filter_extra_wins_over_context(logger):
    """Test an explicit extra field is not overwritten by context."""
    context_filter = ContextualFilter()

    with log_context(source_name="from-context"):
        record = logger.makeRecord(
            "test", logging.INFO, "test.py", 1, "msg", (), None, extra={"source_name": "explicit"}
        )
        context_filter.filter(record)

    assert record.source_name == "explicit"


def test_json_formatter_with_context(logger):
    """Test full chain: context + filter + JSON formatter."""
    formatter = JSONFormatter()
    context_filter = ContextualFilter(service="job-aggregator", environment="test")

    with log_context(fetch_id="abc123", source_name="acme", source_index=0):
        record = logger.makeRecord(
            "test",
            logging.INFO,
            "test.py",
            1,
            "Source succeeded",
            (),
            None,
            extra={"event": "aggregator.source.succeeded"},
        )
        context_filter.filter(record)
        log_obj = json.loads(formatter.format(record))

    assert log_obj["message"] == "Source succeeded"
    assert log_obj["event"] == "aggregator.source.succeeded"
    assert log_obj["service"] == "job-aggregator"
    assert log_obj["environment"] == "test"
    assert log_obj["fetch_id"] == "abc123"
    assert log_obj["source_name"] == "acme"
    assert log_obj["source_index"] == 0


def test_key_value_formatter_basic(logger):
    """Test KeyValueFormatter produces readable output."""
    formatter = KeyValueFormatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    record = logger.makeRecord("test", logging.INFO, "test.py", 1, "Test message", (), None)
    output = formatter.format(record)

    assert "[INFO]" in output
    assert "Test message" in output


def test_key_value_formatter_with_extras(logger):
    """Test KeyValueFormatter includes extra fields as sorted key=value pairs."""
    formatter = KeyValueFormatter("%(message)s")

    record = logger.makeRecord(
        "test",
        logging.INFO,
        "test.py",
        1,
        "Test message",
        (),
        None,
        extra={
            "event": "aggregator.fetch.started",
            "source_count": 3,
            "query": "python engineer",
            "location": "",
            "cancelled": False,
            "max_workers": None,
            "service": "hidden",
        },
    )

    output = formatter.format(record)

    assert output == (
        'Test message cancelled=false event=aggregator.fetch.started location="" '
        'max_workers=null query="python engineer" source_count=3'
    )


def test_configure_logging_invalid_level():
    """Test configure_logging rejects invalid log level."""
    with pytest.raises(ValueError, match="Invalid log level"):
        configure_logging(level="INVALID")


def test_configure_logging_invalid_format():
    """Test configure_logging rejects invalid format type."""
    with pytest.raises(ValueError, match="Invalid log format"):
        configure_logging(format_type="invalid")


def test_configure_logging_json_format(restore_root_logger):
    """Test configure_logging with JSON format."""
    configure_logging(level="INFO", format_type="json", environment="test")

    handlers = restore_root_logger.handlers
    assert len(handlers) == 1
    assert isinstance(handlers[0].formatter, JSONFormatter)


def test_configure_logging_key_value_format(restore_root_logger):
    """Test configure_logging with key-value format."""
    configure_logging(level="DEBUG", format_type="key-value", environment="test")

    handler = restore_root_logger.handlers[0]
    assert isinstance(handler.formatter, KeyValueFormatter)
    assert restore_root_logger.level == logging.DEBUG
    assert logging.getLogger("urllib3").level == logging.INFO


def test_configure_logging_writes_to_stream(restore_root_logger):
    """Test records go to the given stream, enriched with context."""
    stream = io.StringIO()
    configure_logging(level="INFO", format_type="json", environment="ci", stream=stream)

    with log_context(fetch_id="f-1"):
        logging.getLogger("jobaggr.test").info("hello", extra={"event": "test.event"})

    lines = [json.loads(line) for line in stream.getvalue().splitlines()]
    assert lines[0]["event"] == "logging.configured"
    assert lines[-1]["message"] == "hello"
    assert lines[-1]["fetch_id"] == "f-1"
    assert lines[-1]["environment"] == "ci"


def test_timestamp_format_in_json(logger):
    """Test that JSON formatter produces correct ISO-8601 timestamp format."""
    formatter = JSONFormatter()

    record = logger.makeRecord("test", logging.INFO, "test.py", 1, "Test message", (), None)
    timestamp = json.loads(formatter.format(record))["timestamp"]

    # YYYY-MM-DDTHH:MM:SS.sssZ
    assert timestamp.endswith("Z")
    assert "T" in timestamp
    assert len(timestamp) == 24


def test_json_formatter_no_duplicate_fields(logger):
    """Test that JSON formatter doesn't duplicate standard fields in extras."""
    formatter = JSONFormatter()

    record = logger.makeRecord(
        "test", logging.INFO, "test.py", 1, "Test message", (), None, extra={"event": "test.event"}
    )
    log_obj = json.loads(formatter.format(record))

    assert "name" not in log_obj
    assert "levelno" not in log_obj
    assert log_obj["event"] == "test.event"


def test_get_logger_with_component():
    """Test get_logger merges the component into every record."""
    adapter = get_logger("jobaggr.test", component="aggregator")

    assert isinstance(adapter, ComponentLoggerAdapter)
    msg, kwargs = adapter.process("hi", {"extra": {"event": "x"}})
    assert kwargs["extra"] == {"component": "aggregator", "event": "x"}

    _, kwargs = adapter.process("hi", {"extra": {"component": "override"}})
    assert kwargs["extra"]["component"] == "override"


def test_get_logger_without_component():
    """Test get_logger returns a plain logger without a component."""
    assert isinstance(get_logger("jobaggr.test"), logging.Logger)
