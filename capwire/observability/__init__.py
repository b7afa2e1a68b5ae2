"""
capwire - Observability Package

Structured logging and OpenTelemetry tracing for object construction and
dependency wiring.

Components:
- logging: structlog integration with trace context propagation
- tracing: OpenTelemetry tracing with OTLP export

Usage:
    from capwire.observability import setup_tracing, TracingConfig, get_logger

    setup_tracing(TracingConfig(service_name="orders-api"))
    logger = get_logger(__name__)
"""
from capwire.observability.logging import (
    InjectionLogger,
    LogContext,
    LoggingConfig,
    bind_context,
    clear_context,
    get_logger,
    setup_logging,
    shutdown_logging,
)
from capwire.observability.tracing import (
    TracingConfig,
    create_span,
    get_tracer,
    setup_tracing,
    shutdown_tracing,
)

__all__ = [
    # Logging
    "LoggingConfig",
    "setup_logging",
    "shutdown_logging",
    "get_logger",
    "LogContext",
    "bind_context",
    "clear_context",
    "InjectionLogger",
    # Tracing
    "TracingConfig",
    "setup_tracing",
    "shutdown_tracing",
    "get_tracer",
    "create_span",
]
