"""Tests for ``quarry.logging``."""

from __future__ import annotations

import logging

import pytest
import structlog

from quarry.config.settings import get_settings
from quarry.logging import LogContext, _add_service_metadata, configure_logging


class TestConfigureLogging:
    def test_json_renderer(self):
        configure_logging(level="DEBUG", json_format=True)
        config = structlog.get_config()
        processors = config["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        assert structlog.contextvars.merge_contextvars in processors
        assert isinstance(config["logger_factory"], structlog.stdlib.LoggerFactory)

    def test_console_renderer(self):
        configure_logging(json_format=False)
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)

    def test_service_name(self):
        configure_logging(json_format=True, service="reports")
        assert _add_service_metadata(None, "info", {})["service"] == "reports"

    def test_service_metadata_does_not_override(self):
        configure_logging(json_format=True)
        assert _add_service_metadata(None, "info", {"service": "mine"})["service"] == "mine"


class TestSettingsDefaults:
    def test_format_from_settings(self, monkeypatch):
        monkeypatch.setenv("QUARRY_LOG_FORMAT", "console")
        get_settings(_force_reload=True)
        configure_logging()
        assert isinstance(structlog.get_config()["processors"][-1], structlog.dev.ConsoleRenderer)

    def test_json_format_from_settings(self, monkeypatch):
        monkeypatch.setenv("QUARRY_LOG_FORMAT", "json")
        get_settings(_force_reload=True)
        configure_logging()
        assert isinstance(structlog.get_config()["processors"][-1], structlog.processors.JSONRenderer)

    def test_level_from_settings(self, monkeypatch):
        monkeypatch.setenv("QUARRY_LOG_LEVEL", "warning")
        get_settings(_force_reload=True)
        configure_logging(json_format=True)
        wrapper = structlog.get_config()["wrapper_class"]
        assert wrapper is structlog.make_filtering_bound_logger(logging.WARNING)

    def test_explicit_arguments_win(self, monkeypatch):
        monkeypatch.setenv("QUARRY_LOG_FORMAT", "console")
        monkeypatch.setenv("QUARRY_LOG_LEVEL", "WARNING")
        get_settings(_force_reload=True)
        configure_logging(level="error", json_format=True)
        config = structlog.get_config()
        assert isinstance(config["processors"][-1], structlog.processors.JSONRenderer)
        assert config["wrapper_class"] is structlog.make_filtering_bound_logger(logging.ERROR)


class TestLogContext:
    def test_scoped(self):
        with LogContext(connection="reporting") as ctx:
            assert isinstance(ctx, LogContext)
            assert structlog.contextvars.get_contextvars()["connection"] == "reporting"
        assert "connection" not in structlog.contextvars.get_contextvars()

    def test_nested_restores_outer(self):
        with LogContext(connection="outer", backend="sqlite"):
            with LogContext(connection="inner"):
                assert structlog.contextvars.get_contextvars() == {"connection": "inner", "backend": "sqlite"}
            assert structlog.contextvars.get_contextvars() == {"connection": "outer", "backend": "sqlite"}
        assert structlog.contextvars.get_contextvars() == {}

    def test_restored_on_error(self):
        with pytest.raises(ValueError), LogContext(connection="main"):
            raise ValueError("boom")
        assert structlog.contextvars.get_contextvars() == {}
