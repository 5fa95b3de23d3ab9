"""Tests for logging configuration module."""

from __future__ import annotations

import json
import logging
import os
from unittest.mock import patch

import pytest

from agentlang.logging_config import (
    JSONFormatter,
    TextFormatter,
    configure_logging,
    get_log_format,
    get_log_level,
    get_logger,
)


def make_record(
    name: str = "test",
    level: int = logging.INFO,
    msg: str = "Test message",
    args: tuple = (),
    **extra: object,
) -> logging.LogRecord:
    record = logging.LogRecord(
        name=name,
        level=level,
        pathname="/path/to/file.py",
        lineno=42,
        msg=msg,
        args=args,
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestGetLogLevel:
    """Tests for get_log_level function."""

    def test_default_is_info(self) -> None:
        """Default log level should be INFO."""
        with patch.dict(os.environ, {}, clear=True):
            assert get_log_level() == logging.INFO

    @pytest.mark.parametrize(
        ("value", "level"),
        [
            ("DEBUG", logging.DEBUG),
            ("WARNING", logging.WARNING),
            ("WARN", logging.WARNING),
            ("ERROR", logging.ERROR),
            ("debug", logging.DEBUG),
            ("INVALID", logging.INFO),
        ],
    )
    def test_log_level_variable(self, value: str, level: int) -> None:
        """LOG_LEVEL is parsed case-insensitively; unknown names fall back to INFO."""
        with patch.dict(os.environ, {"LOG_LEVEL": value}, clear=True):
            assert get_log_level() == level

    def test_prefixed_variable_wins(self) -> None:
        """AGENTLANG_LOG_LEVEL takes precedence over LOG_LEVEL."""
        env = {"AGENTLANG_LOG_LEVEL": "ERROR", "LOG_LEVEL": "DEBUG"}
        with patch.dict(os.environ, env, clear=True):
            assert get_log_level() == logging.ERROR


class TestGetLogFormat:
    """Tests for get_log_format function."""

    def test_default_is_text(self) -> None:
        """Default log format should be text."""
        with patch.dict(os.environ, {}, clear=True):
            assert get_log_format() == "text"

    def test_json_format(self) -> None:
        """LOG_FORMAT=JSON should return json."""
        with patch.dict(os.environ, {"LOG_FORMAT": "JSON"}, clear=True):
            assert get_log_format() == "json"

    def test_invalid_format_defaults_to_text(self) -> None:
        """Invalid log format should default to text."""
        with patch.dict(os.environ, {"AGENTLANG_LOG_FORMAT": "xml"}, clear=True):
            assert get_log_format() == "text"


class TestJSONFormatter:
    """Tests for JSON log formatter."""

    def test_formats_as_valid_json(self) -> None:
        """Output should be valid JSON."""
        data = json.loads(JSONFormatter().format(make_record(name="test.logger")))
        assert data["message"] == "Test message"
        assert data["level"] == "INFO"
        assert data["logger"] == "test.logger"
        assert "timestamp" in data

    def test_source_for_debug_and_error(self) -> None:
        """Debug and error logs include the source location."""
        for level in (logging.DEBUG, logging.ERROR):
            data = json.loads(JSONFormatter().format(make_record(level=level)))
            assert data["source"]["line"] == 42
            assert data["source"]["file"] == "/path/to/file.py"

    def test_no_source_for_info(self) -> None:
        """Info logs should not include source location."""
        data = json.loads(JSONFormatter().format(make_record()))
        assert "source" not in data

    def test_formats_message_with_args(self) -> None:
        """Message arguments should be formatted."""
        record = make_record(msg="Count: %d, Name: %s", args=(42, "test"))
        data = json.loads(JSONFormatter().format(record))
        assert data["message"] == "Count: 42, Name: test"

    def test_includes_extras(self) -> None:
        """Step and agent extras are emitted under 'extra'."""
        record = make_record(step=3, agent_id="person-1")
        data = json.loads(JSONFormatter().format(record))
        assert data["extra"] == {"step": 3, "agent_id": "person-1"}

    def test_no_extras_key_without_extras(self) -> None:
        """Records without extras carry no 'extra' key."""
        data = json.loads(JSONFormatter().format(make_record()))
        assert "extra" not in data


class TestTextFormatter:
    """Tests for text log formatter."""

    def test_formats_basic_message(self) -> None:
        """Basic message should be formatted correctly."""
        output = TextFormatter(use_colors=False).format(make_record(name="agentlang.test"))
        assert "Test message" in output
        assert "INFO" in output
        assert "[test]" in output

    def test_shortens_logger_name(self) -> None:
        """Logger names under agentlang should be shortened."""
        record = make_record(name="agentlang.runtime.evaluator")
        output = TextFormatter(use_colors=False).format(record)
        assert "[runtime.evaluator]" in output
        assert "agentlang.runtime" not in output

    def test_includes_source_for_debug(self) -> None:
        """Debug logs should include file:line."""
        output = TextFormatter(use_colors=False).format(make_record(level=logging.DEBUG))
        assert "(file.py:42)" in output

    def test_renders_step_and_agent(self) -> None:
        """Step and agent extras are rendered after the message."""
        record = make_record(step=7, agent_id="person-0")
        output = TextFormatter(use_colors=False).format(record)
        assert "{step=7 agent=person-0}" in output

    def test_step_only(self) -> None:
        """A step without an agent renders alone."""
        output = TextFormatter(use_colors=False).format(make_record(step=0))
        assert "{step=0}" in output

    def test_no_colors_when_disabled(self) -> None:
        """Disabled colors produce no escape codes."""
        output = TextFormatter(use_colors=False).format(make_record(level=logging.ERROR))
        assert "\033[" not in output


class TestConfigureLogging:
    """Tests for configure_logging function."""

    @pytest.fixture(autouse=True)
    def restore(self):
        root = logging.getLogger("agentlang")
        saved = (root.level, list(root.handlers), root.propagate)
        yield
        root.setLevel(saved[0])
        root.handlers[:] = saved[1]
        root.propagate = saved[2]

    def test_sets_level_and_single_handler(self) -> None:
        """The namespace logger gets exactly one handler at the given level."""
        configure_logging(level=logging.WARNING, format_type="text")
        configure_logging(level=logging.WARNING, format_type="text")
        root = logging.getLogger("agentlang")
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert root.propagate is False

    def test_json_handler(self) -> None:
        """format_type='json' installs the JSON formatter."""
        configure_logging(level=logging.INFO, format_type="json")
        handler = logging.getLogger("agentlang").handlers[0]
        assert isinstance(handler.formatter, JSONFormatter)

    def test_reads_environment(self) -> None:
        """Level and format default to the environment."""
        env = {"AGENTLANG_LOG_LEVEL": "DEBUG", "AGENTLANG_LOG_FORMAT": "json"}
        with patch.dict(os.environ, env, clear=True):
            configure_logging()
        root = logging.getLogger("agentlang")
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, JSONFormatter)


class TestGetLogger:
    """Tests for get_logger function."""

    def test_prefixes_namespace(self) -> None:
        """Names outside the namespace are prefixed."""
        assert get_logger("custom").name == "agentlang.custom"

    def test_keeps_namespaced_names(self) -> None:
        """Names already under the namespace are kept."""
        assert get_logger("agentlang.cli").name == "agentlang.cli"
