"""
DecoExt - Structured Logging with Trace Context

Integrates structlog with OpenTelemetry trace context propagation,
so lifecycle messages emitted during a dispatch carry the trace_id and
span_id of that dispatch.

Features:
- JSON or console rendering
- Automatic trace context injection (trace_id, span_id)
- Service/environment enrichment
- Context binding through contextvars

Usage:
    from observability.logging import setup_logging, get_logger

    setup_logging(LoggingConfig(level="DEBUG"))

    logger = get_logger(__name__)
    logger.debug("Service instantiated", service="Poller")
"""
from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional

import structlog
from structlog.types import EventDict, WrappedLogger

from config import LoggingConfig, get_config

# Global state
_configured: bool = False


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
    Configure structlog and the stdlib root logger.

    Args:
        config: Logging configuration. Falls back to get_config().logging.
    """
    global _configured

    if _configured:
        return

    app_config = get_config()
    config = config or app_config.logging

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_service_context(config.service_name, app_config.env.value),
        add_timestamp,
        add_trace_context,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

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
    """Route stdlib loggers to stdout with the configured level."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, config.level))
    handler.setFormatter(logging.Formatter("%(message)s"))

    decoext_logger = logging.getLogger("decoext")
    decoext_logger.setLevel(getattr(logging, config.level))
    for existing in decoext_logger.handlers[:]:
        decoext_logger.removeHandler(existing)
    decoext_logger.addHandler(handler)

    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("opentelemetry").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structlog logger instance.

    Args:
        name: Logger name. Names are placed under the "decoext" hierarchy.

    Example:
        >>> logger = get_logger("di.container")
        >>> logger.debug("Service registered", service="Poller")
    """
    if not _configured:
        setup_logging()

    if not name.startswith("decoext"):
        name = f"decoext.{name}"
    return structlog.get_logger(name)


def shutdown_logging() -> None:
    """Flush handlers and allow reconfiguration."""
    global _configured

    for handler in logging.getLogger("decoext").handlers:
        handler.flush()

    structlog.reset_defaults()
    _configured = False


class LogContext:
    """
    Context manager for adding contextual information to all logs.

    Example:
        >>> with LogContext(namespace="alarms", service="Poller"):
        ...     logger.info("Dispatching")
    """

    def __init__(self, **kwargs: Any):
        self.context = kwargs

    def __enter__(self) -> "LogContext":
        structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, *args: Any) -> None:
        structlog.contextvars.unbind_contextvars(*self.context.keys())

    async def __aenter__(self) -> "LogContext":
        return self.__enter__()

    async def __aexit__(self, *args: Any) -> None:
        self.__exit__(*args)


def bind_context(**kwargs: Any) -> None:
    """Bind contextual variables to all subsequent log messages."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove contextual variables from log context."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    """Clear all bound contextual variables."""
    structlog.contextvars.clear_contextvars()
