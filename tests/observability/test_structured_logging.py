"""
Tests for capwire/observability/logging.py - Structured Logging.
"""
import logging

import pytest
from structlog.contextvars import get_contextvars
from structlog.testing import capture_logs

from capwire.observability import logging as capwire_logging
from capwire.observability.logging import (
    InjectionLogger,
    LogContext,
    LoggingConfig,
    add_service_context,
    add_timestamp,
    add_trace_context,
    bind_context,
    clear_context,
    get_logger,
)


class TestProcessors:
    """Individual structlog processors."""

    def test_service_context(self):
        processor = add_service_context("orders-api", "testing")
        event = processor(None, "info", {"event": "hello"})

        assert event["service"] == "orders-api"
        assert event["environment"] == "testing"

    def test_timestamp(self):
        event = add_timestamp(None, "info", {"event": "hello"})

        assert "T" in event["timestamp"]

    def test_trace_context_inside_span(self, span_exporter):
        tracer, _ = span_exporter

        with tracer.start_as_current_span("wire"):
            event = add_trace_context(None, "info", {"event": "hello"})

        assert len(event["trace_id"]) == 32
        assert len(event["span_id"]) == 16

    def test_trace_context_outside_span(self):
        event = add_trace_context(None, "info", {"event": "hello"})

        assert "trace_id" not in event


class TestConfig:
    """LoggingConfig reads the environment."""

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("LOG_FORMAT", "json")

        config = LoggingConfig()

        assert config.level == "DEBUG"
        assert config.json_format is True

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.delenv("LOG_FORMAT", raising=False)

        config = LoggingConfig()

        assert config.level == "INFO"
        assert config.json_format is False


class TestSetup:
    """setup_logging / shutdown_logging."""

    @pytest.fixture
    def fresh_logging(self):
        capwire_logging.shutdown_logging()
        yield
        capwire_logging.shutdown_logging()
        capwire_logging.setup_logging()

    def test_setup_attaches_single_handler(self, fresh_logging):
        capwire_logging.setup_logging(LoggingConfig(level="DEBUG"))
        capwire_logging.setup_logging(LoggingConfig(level="DEBUG"))

        package_logger = logging.getLogger("capwire")
        assert len(package_logger.handlers) == 1
        assert package_logger.level == logging.DEBUG

    def test_shutdown_detaches_handlers(self, fresh_logging):
        capwire_logging.setup_logging()
        capwire_logging.shutdown_logging()

        assert logging.getLogger("capwire").handlers == []

    def test_get_logger_configures_on_first_use(self, fresh_logging):
        get_logger("capwire.tests")

        assert capwire_logging._configured is True


class TestInjectionLogger:
    """Specialised events for wiring."""

    def test_quiet_by_default(self):
        with capture_logs() as logs:
            InjectionLogger("capwire.tests").capability_injected("Foo", "LoggerAware", "logger")

        assert logs == []

    def test_verbose_injection_event(self):
        with capture_logs() as logs:
            InjectionLogger("capwire.tests", verbose=True).capability_injected(
                "Foo", "LoggerAware", "logger"
            )

        assert logs == [{
            "event": "Capability injected",
            "instance_type": "Foo",
            "capability": "LoggerAware",
            "service_key": "logger",
            "component": "injector",
            "log_level": "debug",
        }]

    def test_object_created_event(self):
        with capture_logs() as logs:
            InjectionLogger("capwire.tests").object_created("Foo", 2, 0.5)

        assert logs[0]["capability_count"] == 2
        assert logs[0]["component"] == "factory"

    def test_log_context_binds_and_unbinds(self):
        with LogContext(request_id="abc123"):
            assert get_contextvars()["request_id"] == "abc123"

        assert "request_id" not in get_contextvars()

    def test_bind_and_clear_context(self):
        bind_context(object_type="Greeter")
        assert get_contextvars()["object_type"] == "Greeter"

        clear_context()
        assert get_contextvars() == {}
