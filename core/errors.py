"""
DecoExt - Unified Error Handling

Error hierarchy for the service runtime.

Only configuration mistakes are represented here. Failures raised by user
code (an init body, a filter predicate, a listener method) are never wrapped:
they propagate to the caller unchanged.

Features:
- Hierarchical exception classes with context preservation
- Error severity levels
- Structured error context for debugging
- OpenTelemetry span recording
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Type

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode


class ErrorSeverity(Enum):
    """Error severity levels for prioritized handling."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"
    FATAL = "fatal"


@dataclass
class ErrorContext:
    """Structured context for error debugging and tracing."""

    operation: str
    component: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    trace_id: Optional[str] = None
    span_id: Optional[str] = None
    service_name: Optional[str] = None
    method_name: Optional[str] = None
    namespace: Optional[str] = None
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
            "service_name": self.service_name,
            "method_name": self.method_name,
            "namespace": self.namespace,
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
            stack_trace="".join(traceback.format_stack(limit=8)),
            **kwargs
        )


class DecoError(Exception):
    """
    Base exception for all DecoExt-specific errors.

    Provides:
    - Structured error context
    - Severity level
    - Chained exception support
    - OpenTelemetry span recording
    """

    default_severity: ErrorSeverity = ErrorSeverity.ERROR
    error_code: str = "DECOEXT_ERROR"

    def __init__(
        self,
        message: str,
        context: Optional[ErrorContext] = None,
        severity: Optional[ErrorSeverity] = None,
        cause: Optional[Exception] = None,
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
        """Convert exception to dictionary."""
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


class ConfigurationError(DecoError):
    """The runtime was wired incorrectly. Never retried."""

    error_code = "CONFIG_ERROR"
    default_severity = ErrorSeverity.CRITICAL


class RuntimeConfigError(ConfigurationError):
    """Invalid environment configuration."""

    error_code = "RUNTIME_CONFIG_ERROR"

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        expected_type: Optional[Type] = None,
        actual_value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.config_key = config_key
        self.expected_type = expected_type
        self.actual_value = actual_value


class ServiceNotRegisteredError(ConfigurationError):
    """A listener fired for a class that was never declared as a service."""

    error_code = "SERVICE_NOT_REGISTERED"

    def __init__(self, service_type: type, method_name: Optional[str] = None, **kwargs: Any):
        name = getattr(service_type, "__qualname__", repr(service_type))
        super().__init__(
            f"Listener decorator applied on '{name}', which is not declared as a service",
            context=ErrorContext(
                operation="dispatch",
                component="dispatch",
                service_name=name,
                method_name=method_name,
            ),
            suggestions=["Decorate the class with @container.service()"],
            **kwargs,
        )
        self.service_type = service_type


class UnregisteredDependencyError(ConfigurationError):
    """Strict mode: a declared dependency is not a registered service."""

    error_code = "UNREGISTERED_DEPENDENCY"

    def __init__(self, dependency: type, **kwargs: Any):
        name = getattr(dependency, "__qualname__", repr(dependency))
        super().__init__(
            f"Dependency '{name}' is not a registered service",
            context=ErrorContext(operation="resolve", component="di", service_name=name),
            **kwargs,
        )
        self.dependency = dependency


class DependencyCycleError(ConfigurationError):
    """The declared dependency graph contains a cycle."""

    error_code = "DEPENDENCY_CYCLE"

    def __init__(self, chain: List[type], **kwargs: Any):
        path = " -> ".join(getattr(cls, "__qualname__", repr(cls)) for cls in chain)
        super().__init__(
            f"Circular dependency detected: {path}",
            context=ErrorContext(operation="resolve", component="di"),
            **kwargs,
        )
        self.chain = chain


class DuplicateListenerError(ConfigurationError):
    """A uniquely keyed listener (cron job, message name) was registered twice."""

    error_code = "DUPLICATE_LISTENER"

    def __init__(self, message: str, listener_key: str, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.listener_key = listener_key


class InvalidListenerError(ConfigurationError):
    """A listener decorator was applied to something it cannot wrap."""

    error_code = "INVALID_LISTENER"
