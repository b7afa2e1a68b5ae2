"""
capwire - Distributed Tracing with OpenTelemetry

Object construction and wiring run inside spans so a slow or failing
container lookup shows up in the trace of whatever request triggered it.

Tracing is opt-in: until setup_tracing() installs an SDK provider, the
OpenTelemetry API hands out no-op tracers and spans cost nothing.

Usage:
    from capwire.observability.tracing import setup_tracing, get_tracer

    # Setup at startup
    setup_tracing(TracingConfig(service_name="orders-api"))

    tracer = get_tracer(__name__)
    with tracer.start_as_current_span("build_report") as span:
        span.set_attribute("report.kind", "daily")
"""
from __future__ import annotations

import os
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
)
from opentelemetry.sdk.trace.sampling import (
    ALWAYS_OFF,
    ALWAYS_ON,
    ParentBased,
    TraceIdRatioBased,
)
from opentelemetry.trace import SpanKind, Status, StatusCode

from capwire.core.errors import CapwireError
from capwire.observability.logging import get_logger

logger = get_logger(__name__)

# Global state
_tracer_provider: Optional[TracerProvider] = None
_initialized: bool = False


@dataclass
class TracingConfig:
    """Configuration for OpenTelemetry tracing."""

    service_name: str = "capwire"
    service_version: str = "1.0.0"
    otlp_endpoint: str = field(
        default_factory=lambda: os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317")
    )
    enabled: bool = field(
        default_factory=lambda: os.getenv("CAPWIRE_TRACING_ENABLED", "false").lower() == "true"
    )
    sample_rate: float = field(
        default_factory=lambda: float(os.getenv("OTEL_SAMPLE_RATE", "1.0"))
    )
    environment: str = field(
        default_factory=lambda: os.getenv("ENVIRONMENT", "development")
    )
    otlp_export: bool = field(
        default_factory=lambda: os.getenv("OTEL_OTLP_EXPORT", "true").lower() == "true"
    )
    console_export: bool = field(
        default_factory=lambda: os.getenv("OTEL_CONSOLE_EXPORT", "false").lower() == "true"
    )
    batch_export: bool = True

    # Additional resource attributes
    extra_attributes: Dict[str, str] = field(default_factory=dict)


def setup_tracing(config: Optional[TracingConfig] = None) -> trace.TracerProvider:
    """
    Configure OpenTelemetry tracing with OTLP export.

    Args:
        config: Tracing configuration. Uses defaults if not provided.

    Returns:
        The active tracer provider. When tracing is disabled this is the
        API's global provider, which stays a no-op unless something else
        installs an SDK provider.
    """
    global _tracer_provider, _initialized

    if _initialized:
        return _tracer_provider or trace.get_tracer_provider()

    config = config or TracingConfig()

    if not config.enabled:
        _initialized = True
        return trace.get_tracer_provider()

    resource = Resource.create({
        SERVICE_NAME: config.service_name,
        SERVICE_VERSION: config.service_version,
        "deployment.environment": config.environment,
        **config.extra_attributes,
    })

    if config.sample_rate <= 0.0:
        sampler = ALWAYS_OFF
    elif config.sample_rate >= 1.0:
        sampler = ALWAYS_ON
    else:
        sampler = ParentBased(root=TraceIdRatioBased(config.sample_rate))

    _tracer_provider = TracerProvider(resource=resource, sampler=sampler)

    if config.otlp_export:
        otlp_exporter = OTLPSpanExporter(endpoint=config.otlp_endpoint, insecure=True)
        if config.batch_export:
            processor = BatchSpanProcessor(otlp_exporter)
        else:
            processor = SimpleSpanProcessor(otlp_exporter)
        _tracer_provider.add_span_processor(processor)

    if config.console_export:
        _tracer_provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(_tracer_provider)
    _initialized = True

    logger.info(
        "Tracing configured",
        service_name=config.service_name,
        otlp_endpoint=config.otlp_endpoint if config.otlp_export else None,
        sample_rate=config.sample_rate,
    )
    return _tracer_provider


def get_tracer(name: str, version: str = "1.0.0") -> trace.Tracer:
    """
    Get a tracer instance for manual instrumentation.

    The returned tracer follows whatever provider is installed later, so it
    is safe to create at import time.
    """
    return trace.get_tracer(name, version)


def shutdown_tracing() -> None:
    """
    Gracefully shutdown tracing, flushing any pending spans.

    Call this during application shutdown.
    """
    global _tracer_provider, _initialized
    if _tracer_provider is not None:
        _tracer_provider.shutdown()
    _initialized = False
    _tracer_provider = None


@contextmanager
def create_span(
    name: str,
    kind: SpanKind = SpanKind.INTERNAL,
    attributes: Optional[Dict[str, Any]] = None,
    tracer: Optional[trace.Tracer] = None,
) -> Iterator[trace.Span]:
    """
    Context manager for creating spans with error recording.

    Args:
        name: Span name
        kind: Span kind
        attributes: Initial span attributes
        tracer: Tracer to use, defaults to the capwire tracer

    Yields:
        Active Span instance
    """
    tracer = tracer or get_tracer("capwire")
    with tracer.start_as_current_span(
        name,
        kind=kind,
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        if attributes:
            for key, value in attributes.items():
                span.set_attribute(key, value)
        try:
            yield span
        except CapwireError:
            # recorded on the current span when it was raised
            raise
        except Exception as e:
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.record_exception(e)
            raise
