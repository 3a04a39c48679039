"""
OpenTelemetry tracing for the Secret Mirror operator.

Tracing is off by default. When enabled, every kopf handler decorated with
``traced_handler`` produces one span per invocation, exported over OTLP
gRPC. With tracing disabled the OpenTelemetry API hands out no-op tracers,
so the decorator costs next to nothing.
"""

import functools
import logging
from collections.abc import Awaitable, Callable
from typing import ParamSpec, TypeVar

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased
from opentelemetry.trace import SpanKind, Status, StatusCode, Tracer

logger = logging.getLogger(__name__)

_tracer_provider: TracerProvider | None = None
_initialized: bool = False

P = ParamSpec("P")
R = TypeVar("R")


def _build_provider(
    endpoint: str, service_name: str, sample_rate: float, insecure: bool
) -> TracerProvider:
    provider = TracerProvider(
        resource=Resource.create({"service.name": service_name}),
        # Follow the caller's sampling decision; sample roots by ratio
        sampler=ParentBased(root=TraceIdRatioBased(sample_rate)),
    )
    provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, insecure=insecure))
    )
    return provider


def setup_tracing(
    enabled: bool = False,
    endpoint: str = "http://localhost:4317",
    service_name: str = "secret-mirror-operator",
    sample_rate: float = 1.0,
    insecure: bool = True,
) -> TracerProvider | None:
    """
    Install the global tracer provider. Only the first call has an effect.

    Returns:
        The installed provider, or None when tracing is disabled
    """
    global _tracer_provider, _initialized

    if _initialized:
        return _tracer_provider
    _initialized = True

    if not enabled:
        logger.info("OpenTelemetry tracing is disabled")
        return None

    logger.info(f"Exporting traces for {service_name} to {endpoint} (sample rate {sample_rate})")
    _tracer_provider = _build_provider(endpoint, service_name, sample_rate, insecure)
    trace.set_tracer_provider(_tracer_provider)
    return _tracer_provider


def shutdown_tracing() -> None:
    """Flush pending spans and forget the provider."""
    global _tracer_provider, _initialized

    if _tracer_provider is not None:
        _tracer_provider.shutdown()
        _tracer_provider = None
    _initialized = False


def get_tracer(name: str = __name__) -> Tracer:
    return trace.get_tracer(name)


def traced_handler(
    operation_name: str,
    span_kind: SpanKind = SpanKind.INTERNAL,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """
    Wrap an async kopf handler in a span named ``operation_name``.

    The handled object's namespace and name become span attributes; an
    exception marks the span as failed and is re-raised unchanged.
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            attributes = {
                "k8s.namespace": str(kwargs.get("namespace", "")),
                "k8s.resource.name": str(kwargs.get("name", "")),
                "kopf.handler": func.__name__,
            }
            tracer = get_tracer(func.__module__)
            with tracer.start_as_current_span(
                operation_name, kind=span_kind, attributes=attributes
            ) as span:
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    span.record_exception(e)
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    raise
                span.set_status(Status(StatusCode.OK))
                return result

        return wrapper

    return decorator


def is_tracing_enabled() -> bool:
    return _tracer_provider is not None
