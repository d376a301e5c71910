"""
DecoExt - Observability Package

Structured logging and tracing for the service runtime.

Components:
- logging: structlog integration with trace context propagation
- tracing: OpenTelemetry spans around event dispatch

Usage:
    from observability import setup_logging, setup_tracing, get_logger

    setup_logging()
    setup_tracing()
"""
from .logging import (
    setup_logging,
    get_logger,
    shutdown_logging,
    LogContext,
    bind_context,
    unbind_context,
    clear_context,
)
from .tracing import (
    TracingConfig,
    setup_tracing,
    get_tracer,
    shutdown_tracing,
    dispatch_span,
)

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "shutdown_logging",
    "LogContext",
    "bind_context",
    "unbind_context",
    "clear_context",
    # Tracing
    "TracingConfig",
    "setup_tracing",
    "get_tracer",
    "shutdown_tracing",
    "dispatch_span",
]
