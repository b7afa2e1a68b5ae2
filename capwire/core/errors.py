"""
capwire - Unified Error Handling

Provides the error hierarchy raised while building capability tables,
constructing objects and wiring their dependencies.

Features:
- Hierarchical exception classes with context preservation
- Error severity levels for prioritized handling
- Structured error context for debugging
- OpenTelemetry integration for error tracing

Propagation policy: nothing in capwire swallows or retries these errors.
Every failure surfaces to the immediate caller with the marker and service
key needed to diagnose a missing container registration.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Hashable, List, Optional, Sequence

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode


class ErrorSeverity(Enum):
    """Error severity levels for prioritized handling."""

    WARNING = "warning"    # Potential problem, degraded operation
    ERROR = "error"        # Operation failed
    CRITICAL = "critical"  # Misconfiguration, fix before running again


def describe_key(key: Any) -> str:
    """Human readable form of a service key or type."""
    if isinstance(key, type):
        return key.__qualname__
    return str(key)


@dataclass
class ErrorContext:
    """Structured context for error debugging and tracing."""

    operation: str
    component: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    trace_id: Optional[str] = None
    span_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    stack_trace: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dictionary for serialization."""
        return {
            "operation": self.operation,
            "component": self.component,
            "timestamp": self.timestamp.isoformat(),
            "trace_id": self.trace_id,
            "span_id": self.span_id,
            "metadata": self.metadata,
            "stack_trace": self.stack_trace,
        }

    @classmethod
    def from_current_span(
        cls,
        operation: str,
        component: str,
        **kwargs: Any
    ) -> "ErrorContext":
        """Create context from current OpenTelemetry span."""
        span = trace.get_current_span()
        trace_id = None
        span_id = None

        if span and span.is_recording():
            ctx = span.get_span_context()
            if ctx.is_valid:
                trace_id = format(ctx.trace_id, "032x")
                span_id = format(ctx.span_id, "016x")

        return cls(
            operation=operation,
            component=component,
            trace_id=trace_id,
            span_id=span_id,
            stack_trace=traceback.format_exc(),
            **kwargs
        )


class CapwireError(Exception):
    """
    Base exception for all capwire errors.

    Provides:
    - Structured error context
    - Severity level
    - Chained exception support
    - OpenTelemetry span recording
    """

    default_severity: ErrorSeverity = ErrorSeverity.ERROR
    error_code: str = "CAPWIRE_ERROR"

    def __init__(
        self,
        message: str,
        context: Optional[ErrorContext] = None,
        severity: Optional[ErrorSeverity] = None,
        cause: Optional[BaseException] = None,
        suggestions: Optional[List[str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = context
        self.severity = severity or self.default_severity
        self.cause = cause
        self.suggestions = suggestions or []
        self.timestamp = datetime.now(timezone.utc)

        self._record_to_span()

    def _record_to_span(self) -> None:
        """Record exception to current OpenTelemetry span."""
        span = trace.get_current_span()
        if span and span.is_recording():
            span.set_status(Status(StatusCode.ERROR, self.message))
            span.record_exception(self)
            span.set_attribute("error.code", self.error_code)
            span.set_attribute("error.severity", self.severity.value)
            if self.context:
                span.set_attribute("error.component", self.context.component)
                span.set_attribute("error.operation", self.context.operation)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for reporting."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "severity": self.severity.value,
            "suggestions": self.suggestions,
            "timestamp": self.timestamp.isoformat(),
            "context": self.context.to_dict() if self.context else None,
            "cause": str(self.cause) if self.cause else None,
        }

    def __str__(self) -> str:
        parts = [f"[{self.error_code}] {self.message}"]
        if self.context:
            parts.append(f" (component: {self.context.component})")
        if self.cause:
            parts.append(f" [caused by: {self.cause}]")
        return "".join(parts)

    def with_context(self, **kwargs: Any) -> "CapwireError":
        """Add additional context to the error."""
        if self.context:
            self.context.metadata.update(kwargs)
        else:
            self.context = ErrorContext(
                operation="unknown",
                component="unknown",
                metadata=kwargs
            )
        return self


class CapwireConfigError(CapwireError):
    """Configuration and wiring-setup errors."""

    error_code = "CONFIG_ERROR"
    default_severity = ErrorSeverity.CRITICAL


class CapabilityTableError(CapwireConfigError):
    """A capability table was declared with a duplicate or unusable marker."""

    error_code = "CAPABILITY_TABLE_ERROR"

    def __init__(
        self,
        message: str,
        marker: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.marker = marker


class ConstructionError(CapwireError):
    """An object could not be instantiated from its type and arguments."""

    error_code = "CONSTRUCTION_ERROR"

    def __init__(
        self,
        message: str,
        object_type: Any = None,
        arguments: Sequence[Any] = (),
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.object_type = object_type
        self.arguments = tuple(arguments)


class UnresolvedServiceError(CapwireError):
    """The container has no registration for the requested service key."""

    error_code = "UNRESOLVED_SERVICE"

    def __init__(
        self,
        message: Optional[str] = None,
        service_key: Optional[Hashable] = None,
        **kwargs: Any,
    ):
        if message is None:
            message = f"Service '{describe_key(service_key)}' is not registered"
        super().__init__(message, **kwargs)
        self.service_key = service_key


class DependencyResolutionError(CapwireError):
    """
    A capability declared by an instance could not be satisfied.

    The original container failure is available as ``cause`` and as
    ``__cause__``. Any capabilities attached before the failure leave the
    instance in a partially wired state that callers must discard.
    """

    error_code = "DEPENDENCY_RESOLUTION_ERROR"

    def __init__(
        self,
        message: Optional[str] = None,
        service_key: Optional[Hashable] = None,
        marker: Optional[type] = None,
        instance_type: Optional[type] = None,
        **kwargs: Any,
    ):
        if message is None:
            message = (
                f"Could not resolve service '{describe_key(service_key)}' "
                f"for capability {describe_key(marker)}"
            )
            if instance_type is not None:
                message += f" on {describe_key(instance_type)}"
        kwargs.setdefault(
            "suggestions",
            [f"Register '{describe_key(service_key)}' in the container before wiring"],
        )
        super().__init__(message, **kwargs)
        self.service_key = service_key
        self.marker = marker
        self.instance_type = instance_type
