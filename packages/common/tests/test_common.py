"""Tests for shared exceptions, utilities and logging setup."""

import io
import json

import pytest
import structlog
from common import (
    ConfigurationError,
    FetchError,
    RemoteLookupError,
    ReputationException,
    get_env,
    parse_bool,
    setup_logging,
)


def test_exception_string_includes_context_and_cause():
    """Test exceptions render context and the wrapped error."""
    cause = TimeoutError("read timed out")
    error = RemoteLookupError(
        "Safe Browsing request failed",
        context={"provider": "safebrowsing", "timeout": 5.0},
        original_error=cause,
    )

    rendered = str(error)

    assert rendered.startswith("Safe Browsing request failed (provider=safebrowsing, timeout=5.0)")
    assert "[caused by: TimeoutError: read timed out]" in rendered
    assert isinstance(error, ReputationException)


def test_exception_without_context():
    """Test the plain message is kept when there is no context."""
    assert str(FetchError("Failed to fetch")) == "Failed to fetch"
    assert ConfigurationError("bad").context == {}


def test_get_env(monkeypatch):
    """Test environment lookups with defaults and required flag."""
    monkeypatch.setenv("REPUTATION_TEST_VALUE", "42")
    monkeypatch.delenv("REPUTATION_TEST_MISSING", raising=False)

    assert get_env("REPUTATION_TEST_VALUE") == "42"
    assert get_env("REPUTATION_TEST_MISSING", "fallback") == "fallback"
    assert get_env("REPUTATION_TEST_MISSING") == ""
    with pytest.raises(ValueError):
        get_env("REPUTATION_TEST_MISSING", required=True)


@pytest.mark.parametrize(
    "value,expected",
    [("true", True), ("1", True), (" Yes ", True), ("on", True), ("false", False), ("0", False), ("OFF", False)],
)
def test_parse_bool(value, expected):
    """Test boolean spellings."""
    assert parse_bool(value) is expected


def test_parse_bool_rejects_unknown():
    """Test unrecognised values are rejected."""
    with pytest.raises(ValueError):
        parse_bool("maybe")


def test_setup_logging_json_output():
    """Test JSON logs carry the service name and event."""
    stream = io.StringIO()
    try:
        logger = setup_logging(level="INFO", service_name="reputation", json_format=True, stream=stream)
        logger.info("Feed refresh complete", total_hosts=3)
        logger.debug("Hidden below INFO")
    finally:
        structlog.reset_defaults()

    lines = [json.loads(line) for line in stream.getvalue().splitlines() if line]
    assert len(lines) == 1
    record = lines[0]
    assert record["event"] == "Feed refresh complete"
    assert record["service"] == "reputation"
    assert record["total_hosts"] == 3
    assert record["level"] == "info"
    assert "timestamp" in record


def test_setup_logging_rejects_unknown_level():
    """Test an unknown level name is a configuration error."""
    with pytest.raises(ConfigurationError) as exc_info:
        setup_logging(level="LOUD", stream=io.StringIO())

    assert exc_info.value.context == {"level": "LOUD"}
