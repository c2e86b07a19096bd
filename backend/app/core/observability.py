"""
Distributed tracing for the NetMap API.

When TRACING_ENABLED is set, every request gets an OpenTelemetry server
span and the JSON log formatter stamps trace/span ids on log lines emitted
inside it.
"""
import logging

from fastapi import FastAPI

from backend.app.core.config import Settings

try:
    from opentelemetry import trace
    from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
    OPENTELEMETRY_AVAILABLE = True
except ImportError:
    OPENTELEMETRY_AVAILABLE = False

logger = logging.getLogger(__name__)


def setup_tracing(app: FastAPI, settings: Settings) -> bool:
    """Instrument the app. Returns whether tracing is active."""
    if not settings.tracing_enabled:
        return False
    if not OPENTELEMETRY_AVAILABLE:
        logger.warning("TRACING_ENABLED is set but the OpenTelemetry SDK is not installed")
        return False

    resource = Resource.create({"service.name": "netmap-backend", "service.version": settings.app_version})
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    trace.set_tracer_provider(provider)

    FastAPIInstrumentor.instrument_app(app, tracer_provider=provider, excluded_urls="health,ready")
    logger.info("OpenTelemetry request tracing enabled")
    return True
