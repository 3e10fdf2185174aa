"""OpenTelemetry tracing for inbound service operations."""

from __future__ import annotations

import time
from collections.abc import Callable, Coroutine
from functools import wraps
from typing import TYPE_CHECKING, Any, ParamSpec, TypeVar

import structlog

if TYPE_CHECKING:
    from jobchat_core.config.settings import Settings

logger = structlog.get_logger()

# Module-level tracer, set by configure_tracing(). None while disabled.
_tracer: Any = None

P = ParamSpec("P")
R = TypeVar("R")


def configure_tracing(settings: Settings) -> None:
    """Configure OpenTelemetry tracing based on settings.

    OTEL imports are deferred so a disabled exporter never loads them.
    """
    global _tracer

    if settings.otel_exporter == "none":
        _tracer = None
        return

    from opentelemetry import trace
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider

    resource = Resource.create({"service.name": settings.otel_service_name})
    provider = TracerProvider(resource=resource)

    if settings.otel_exporter == "console":
        from opentelemetry.sdk.trace.export import (
            ConsoleSpanExporter,
            SimpleSpanProcessor,
        )

        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

    elif settings.otel_exporter == "otlp":
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
            OTLPSpanExporter,
        )
        from opentelemetry.sdk.trace.export import BatchSpanProcessor

        exporter = OTLPSpanExporter(endpoint=settings.otel_endpoint)
        provider.add_span_processor(BatchSpanProcessor(exporter))

    trace.set_tracer_provider(provider)
    _tracer = trace.get_tracer("jobchat")
    logger.info("tracing_configured", exporter=settings.otel_exporter)


def disable_tracing() -> None:
    """Drop the module tracer so decorated operations run unwrapped."""
    global _tracer
    _tracer = None


def get_tracer() -> Any:
    """Return the configured tracer, or None when tracing is disabled."""
    return _tracer


def traced_operation(
    name: str,
) -> Callable[
    [Callable[P, Coroutine[Any, Any, R]]], Callable[P, Coroutine[Any, Any, R]]
]:
    """Async decorator that wraps a service operation in an OTEL span.

    Noop when tracing is disabled (_tracer is None).
    """

    def decorator(
        fn: Callable[P, Coroutine[Any, Any, R]],
    ) -> Callable[P, Coroutine[Any, Any, R]]:
        @wraps(fn)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            if _tracer is None:
                return await fn(*args, **kwargs)

            with _tracer.start_as_current_span(f"operation.{name}") as span:
                span.set_attribute("operation.name", name)
                start = time.monotonic()
                try:
                    result = await fn(*args, **kwargs)
                    span.set_attribute("operation.status", "ok")
                    return result
                except Exception as exc:
                    span.set_attribute("operation.status", "error")
                    span.set_attribute("operation.error", str(exc))
                    raise
                finally:
                    elapsed = time.monotonic() - start
                    span.set_attribute("operation.duration_seconds", round(elapsed, 3))

        return wrapper

    return decorator
