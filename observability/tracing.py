"""
DecoExt - Tracing with OpenTelemetry

Every event dispatch runs inside a span so that a slow init chain or a
failing listener can be traced back to the notification that triggered it.

Without setup_tracing() the OpenTelemetry API hands out no-op tracers, so
the runtime can be embedded without any tracing backend.

Usage:
    from observability.tracing import setup_tracing, dispatch_span

    setup_tracing(TracingConfig(console_export=True))

    with dispatch_span("alarms", "Poller", "poll") as span:
        ...
"""
from __future__ import annotations

import os
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource, SERVICE_NAME, SERVICE_VERSION
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor, ConsoleSpanExporter, SpanExporter
from opentelemetry.trace import Span, SpanKind, Status, StatusCode

TRACER_NAME = "decoext.dispatch"

# Global state
_tracer_provider: Optional[TracerProvider] = None


@dataclass
class TracingConfig:
    """Configuration for OpenTelemetry tracing."""

    service_name: str = field(
        default_factory=lambda: os.getenv("DECOEXT_SERVICE_NAME", "decoext")
    )
    service_version: str = "0.3.0"
    environment: str = field(
        default_factory=lambda: os.getenv("ENVIRONMENT", "development")
    )
    console_export: bool = field(
        default_factory=lambda: os.getenv("OTEL_CONSOLE_EXPORT", "false").lower() == "true"
    )
    extra_attributes: Dict[str, str] = field(default_factory=dict)


def setup_tracing(
    config: Optional[TracingConfig] = None,
    exporter: Optional[SpanExporter] = None,
) -> TracerProvider:
    """
    Install an SDK tracer provider.

    Args:
        config: Tracing configuration. Uses defaults if not provided.
        exporter: Extra span exporter (e.g. an in-memory exporter in tests).
    """
    global _tracer_provider

    if _tracer_provider is not None:
        return _tracer_provider

    config = config or TracingConfig()
    resource = Resource.create({
        SERVICE_NAME: config.service_name,
        SERVICE_VERSION: config.service_version,
        "deployment.environment": config.environment,
        **config.extra_attributes,
    })
    _tracer_provider = TracerProvider(resource=resource)

    if config.console_export:
        _tracer_provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
    if exporter is not None:
        _tracer_provider.add_span_processor(SimpleSpanProcessor(exporter))

    trace.set_tracer_provider(_tracer_provider)
    return _tracer_provider


def get_tracer(name: str = TRACER_NAME) -> trace.Tracer:
    """Get a tracer from the active provider."""
    if _tracer_provider is not None:
        return _tracer_provider.get_tracer(name)
    return trace.get_tracer(name)


def shutdown_tracing() -> None:
    """Flush pending spans and forget the provider."""
    global _tracer_provider
    if _tracer_provider is not None:
        _tracer_provider.shutdown()
    _tracer_provider = None


@contextmanager
def dispatch_span(
    namespace: str,
    service_name: str,
    method_name: str,
    attributes: Optional[Dict[str, Any]] = None,
) -> Iterator[Span]:
    """
    Span around one runtime handler invocation.

    Exceptions are recorded on the span and re-raised unchanged.
    """
    tracer = get_tracer()
    with tracer.start_as_current_span(
        f"{namespace}.dispatch",
        kind=SpanKind.CONSUMER,
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        span.set_attribute("decoext.namespace", namespace)
        span.set_attribute("decoext.service", service_name)
        span.set_attribute("decoext.method", method_name)
        for key, value in (attributes or {}).items():
            span.set_attribute(key, value)
        try:
            yield span
        except Exception as e:
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.record_exception(e)
            raise
