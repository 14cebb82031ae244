"""
OpenTelemetry tracing setup.
"""

from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.trace import Tracer

from dirqueue import __version__
from dirqueue.config import Settings, get_settings

# Global tracer instance
_tracer: Tracer | None = None


def setup_tracing(
    settings: Settings | None = None,
    enable_console_export: bool = False,
) -> Tracer:
    """
    Set up OpenTelemetry tracing with an OTLP exporter.
    
    Producers embedded in a larger application normally skip this and
    inherit whatever tracer provider the application installed.
    
    Args:
        settings: Settings to use. Defaults to the cached environment settings.
        enable_console_export: If True, also export spans to console.
        
    Returns:
        Tracer: The tracer instance.
    """
    global _tracer

    settings = settings or get_settings()

    # Create resource with service info
    resource = Resource.create(
        {
            "service.name": settings.otel_service_name,
            "service.version": __version__,
        }
    )

    # Create tracer provider
    provider = TracerProvider(resource=resource)

    # Add OTLP exporter
    try:
        otlp_exporter = OTLPSpanExporter(
            endpoint=settings.otel_exporter_otlp_endpoint,
            insecure=True,
        )
        provider.add_span_processor(BatchSpanProcessor(otlp_exporter))
    except Exception:
        # OTLP exporter not available, skip
        pass

    # Optionally add console exporter for debugging
    if enable_console_export:
        provider.add_span_processor(
            BatchSpanProcessor(ConsoleSpanExporter())
        )

    # Set the global tracer provider
    trace.set_tracer_provider(provider)

    _tracer = provider.get_tracer(settings.otel_service_name, __version__)

    return _tracer


def get_tracer() -> Tracer:
    """
    Get the tracer instance.
    
    Falls back to the globally installed provider (a no-op one unless the
    application configured tracing).
    
    Returns:
        Tracer: The tracer instance.
    """
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer(get_settings().otel_service_name)
    return _tracer


def set_span_attributes(**attributes: Any) -> None:
    """
    Set attributes on the current span, skipping None values.
    
    Args:
        **attributes: Span attributes.
    """
    current_span = trace.get_current_span()
    for key, value in attributes.items():
        if value is not None:
            current_span.set_attribute(key, str(value))
