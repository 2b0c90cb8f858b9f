"""Tests for structlog setup."""

from __future__ import annotations

import io
import json
import logging

import pytest
import structlog

from headerpolicy.csp.builder import CspBuilder
from headerpolicy.headers.options import PolicyNotFoundError, SecurityHeaderOptions
from headerpolicy.logging_config import _rename_logger_to_module, setup_logging


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    structlog.reset_defaults()
    logging.getLogger().handlers.clear()


def _last_json_line(out: str) -> dict:
    return json.loads(out.strip().splitlines()[-1])


class TestJsonOutput:
    def test_fields(self, capfd):
        setup_logging(log_level="debug", json_format=True)
        structlog.get_logger("headerpolicy.test").info("test_event", policy="strict")
        log = _last_json_line(capfd.readouterr().out)
        assert log["event"] == "test_event"
        assert log["level"] == "info"
        assert log["policy"] == "strict"
        assert log["module"] == "headerpolicy.test"
        assert "logger" not in log
        assert "timestamp" in log

    def test_directive_replacement_logged_at_debug(self, capfd):
        setup_logging(log_level="debug", json_format=True)
        csp = CspBuilder()
        csp.add_script_src()
        csp.add_script_src()
        log = _last_json_line(capfd.readouterr().out)
        assert log["event"] == "csp_directive_replaced"
        assert log["directive"] == "script-src"

    def test_policy_not_found_logged(self, capfd):
        setup_logging(log_level="info", json_format=True)
        with pytest.raises(PolicyNotFoundError):
            SecurityHeaderOptions().require_policy("missing")
        log = _last_json_line(capfd.readouterr().out)
        assert log["event"] == "security_headers_policy_not_found"
        assert log["level"] == "error"
        assert log["policy"] == "missing"


class TestLevels:
    def test_info_level_hides_debug(self, capfd):
        setup_logging(log_level="info", json_format=True)
        structlog.get_logger("headerpolicy.test").debug("hidden")
        assert "hidden" not in capfd.readouterr().out

    def test_invalid_level_defaults_to_info(self):
        setup_logging(log_level="INVALID", json_format=True)
        assert logging.getLogger().level == logging.INFO

    def test_console_renderer(self, capfd):
        setup_logging(log_level="info", json_format=False)
        structlog.get_logger("headerpolicy.test").info("console_event")
        out = capfd.readouterr().out
        assert "console_event" in out
        with pytest.raises(json.JSONDecodeError):
            json.loads(out.strip())


class TestStream:
    def test_custom_stream(self, capfd):
        stream = io.StringIO()
        setup_logging(log_level="info", json_format=True, stream=stream)
        structlog.get_logger("headerpolicy.test").info("stream_event", policy="api")
        log = _last_json_line(stream.getvalue())
        assert log["event"] == "stream_event"
        assert log["policy"] == "api"
        assert "stream_event" not in capfd.readouterr().out

    def test_setup_replaces_previous_handler(self):
        setup_logging(stream=io.StringIO())
        setup_logging(stream=io.StringIO())
        assert len(logging.getLogger().handlers) == 1


class TestRenameProcessor:
    def test_renames_logger_key(self):
        result = _rename_logger_to_module(None, "info", {"logger": "headerpolicy.csp", "event": "x"})
        assert result == {"module": "headerpolicy.csp", "event": "x"}

    def test_no_logger_key(self):
        assert _rename_logger_to_module(None, "info", {"event": "x"}) == {"event": "x"}
