"""
capwire - Structured Logging with Trace Context

Integrates structlog with OpenTelemetry trace context propagation, so every
log event emitted while an object is being constructed or wired carries the
trace_id and span_id of the surrounding span.

Usage:
    from capwire.observability.logging import setup_logging, get_logger

    # Setup at startup
    setup_logging(LoggingConfig(level="INFO", json_format=True))

    # Get logger
    logger = get_logger(__name__)
    logger.info("Capability injected", capability="LoggerAware", service="logger")
"""
from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

import structlog
from structlog.types import EventDict, WrappedLogger

# Global state
_configured: bool = False


@dataclass
class LoggingConfig:
    """Configuration for structured logging."""

    service_name: str = "capwire"
    level: str = field(
        default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper()
    )
    json_format: bool = field(
        default_factory=lambda: os.getenv("LOG_FORMAT", "console").lower() == "json"
    )
    enable_trace_context: bool = True
    include_timestamp: bool = True
    environment: str = field(
        default_factory=lambda: os.getenv("ENVIRONMENT", "development")
    )


def add_trace_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """
    Structlog processor that adds OpenTelemetry trace context to log events.
    """
    from opentelemetry import trace

    span = trace.get_current_span()
    if span and span.is_recording():
        ctx = span.get_span_context()
        if ctx.is_valid:
            event_dict["trace_id"] = format(ctx.trace_id, "032x")
            event_dict["span_id"] = format(ctx.span_id, "016x")

    return event_dict


def add_service_context(
    service_name: str,
    environment: str,
) -> structlog.types.Processor:
    """
    Create a processor that adds service context to all log events.

    Args:
        service_name: Name of the service
        environment: Deployment environment
    """

    def processor(
        logger: WrappedLogger,
        method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        event_dict["service"] = service_name
        event_dict["environment"] = environment
        return event_dict

    return processor


def add_timestamp(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Add ISO8601 timestamp."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def setup_logging(config: Optional[LoggingConfig] = None) -> None:
    """
    Configure structlog with OpenTelemetry trace context integration.

    Calling it more than once is a no-op until shutdown_logging() runs.

    Args:
        config: Logging configuration. Uses defaults if not provided.
    """
    global _configured

    if _configured:
        return

    config = config or LoggingConfig()

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_service_context(config.service_name, config.environment),
    ]

    if config.include_timestamp:
        processors.append(add_timestamp)

    if config.enable_trace_context:
        processors.append(add_trace_context)

    processors.append(structlog.stdlib.PositionalArgumentsFormatter())
    processors.append(structlog.processors.StackInfoRenderer())
    processors.append(structlog.processors.format_exc_info)
    processors.append(structlog.processors.UnicodeDecoder())

    if config.json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _configure_stdlib_logging(config)

    _configured = True


def _configure_stdlib_logging(config: LoggingConfig) -> None:
    """Route structlog output through a stdout handler on the capwire logger."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, config.level))
    # structlog has already rendered the event
    handler.setFormatter(logging.Formatter("%(message)s"))

    package_logger = logging.getLogger("capwire")
    package_logger.setLevel(getattr(logging, config.level))

    for existing in package_logger.handlers[:]:
        package_logger.removeHandler(existing)
    package_logger.addHandler(handler)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structlog logger instance.

    Args:
        name: Logger name, typically __name__

    Returns:
        Bound logger instance
    """
    if not _configured:
        setup_logging()

    return structlog.get_logger(name)


def shutdown_logging() -> None:
    """Flush and detach capwire handlers."""
    global _configured

    package_logger = logging.getLogger("capwire")
    for handler in package_logger.handlers[:]:
        handler.flush()
        handler.close()
        package_logger.removeHandler(handler)

    _configured = False


class LogContext:
    """
    Context manager for adding contextual information to all logs.

    Example:
        >>> with LogContext(request_id="abc123"):
        ...     factory.create_object(ReportService)
    """

    def __init__(self, **kwargs: Any):
        self.context = kwargs

    def __enter__(self) -> "LogContext":
        structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, *args: Any) -> None:
        structlog.contextvars.unbind_contextvars(*self.context.keys())


def bind_context(**kwargs: Any) -> None:
    """Bind contextual variables to all subsequent log messages."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound contextual variables."""
    structlog.contextvars.clear_contextvars()


class InjectionLogger:
    """Logger specialized for construction and wiring events."""

    def __init__(self, name: str = "capwire.di", verbose: bool = False):
        self._logger = get_logger(name)
        self.verbose = verbose

    def capability_injected(
        self,
        instance_type: str,
        capability: str,
        service_key: str,
    ) -> None:
        if not self.verbose:
            return
        self._logger.debug(
            "Capability injected",
            instance_type=instance_type,
            capability=capability,
            service_key=service_key,
            component="injector",
        )

    def resolution_failed(
        self,
        instance_type: str,
        capability: str,
        service_key: str,
        error: str,
    ) -> None:
        self._logger.error(
            "Dependency resolution failed",
            instance_type=instance_type,
            capability=capability,
            service_key=service_key,
            error=error,
            component="injector",
        )

    def object_created(
        self,
        object_type: str,
        capability_count: int,
        duration_ms: float,
    ) -> None:
        self._logger.debug(
            "Object created",
            object_type=object_type,
            capability_count=capability_count,
            duration_ms=duration_ms,
            component="factory",
        )

    def factory_wired(self, table_size: int) -> None:
        self._logger.info(
            "Abstract factory wired",
            capability_count=table_size,
            component="bootstrap",
        )
