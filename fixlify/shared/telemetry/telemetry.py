"""OpenTelemetry setup for the automation service.

Spans come from three places: FastAPI requests, SQLAlchemy queries and the
traced decorator around workflow runs, step dispatch and scheduler polls.
"""

import logging
import threading

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
)
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased
from sqlalchemy.ext.asyncio import AsyncEngine

from fixlify.core.config import Settings

logger = logging.getLogger(__name__)

# Liveness and readiness checks would otherwise dominate the trace volume.
UNTRACED_URLS = "/api/v1/health,/api/v1/health/ready"


def build_span_exporter(kind: str, otlp_endpoint: str | None = None) -> SpanExporter | None:
    """Exporter for a TELEMETRY_EXPORTER value; None means spans are sampled but dropped."""
    kind = kind.strip().lower()
    if kind == "none":
        return None
    if kind == "otlp":
        if otlp_endpoint:
            return OTLPSpanExporter(
                endpoint=otlp_endpoint, insecure=otlp_endpoint.startswith("http://")
            )
        logger.warning("OTLP exporter selected without an endpoint, using console")
    elif kind != "console":
        logger.warning("Unknown telemetry exporter %r, using console", kind)
    return ConsoleSpanExporter()


class AutomationTelemetry:
    """Tracer provider plus the instrumentations registered against it."""

    def __init__(
        self,
        service_name: str,
        service_version: str,
        *,
        environment: str = "development",
        exporter: str = "console",
        otlp_endpoint: str | None = None,
        sample_rate: float = 1.0,
    ) -> None:
        self.service_name = service_name
        self.service_version = service_version
        self.environment = environment
        self.exporter = exporter
        self.otlp_endpoint = otlp_endpoint
        self.sample_rate = min(max(sample_rate, 0.0), 1.0)
        self.provider: TracerProvider | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "AutomationTelemetry":
        return cls(
            settings.app_name,
            settings.app_version,
            environment=settings.telemetry_environment,
            exporter=settings.telemetry_exporter,
            otlp_endpoint=settings.telemetry_otlp_endpoint,
            sample_rate=settings.telemetry_sample_rate,
        )

    def start(self) -> TracerProvider | None:
        """Install the global tracer provider. Failures are logged and tracing stays off."""
        try:
            provider = TracerProvider(
                resource=Resource(
                    attributes={
                        SERVICE_NAME: self.service_name,
                        SERVICE_VERSION: self.service_version,
                        "deployment.environment": self.environment,
                    }
                ),
                sampler=ParentBased(TraceIdRatioBased(self.sample_rate)),
            )
            span_exporter = build_span_exporter(self.exporter, self.otlp_endpoint)
            if span_exporter is not None:
                provider.add_span_processor(BatchSpanProcessor(span_exporter))
            trace.set_tracer_provider(provider)
        except Exception:
            logger.exception("Tracing setup failed; continuing without spans")
            return None
        self.provider = provider
        logger.info(
            "Tracing started for %s %s (exporter=%s, sample_rate=%.2f)",
            self.service_name,
            self.service_version,
            self.exporter,
            self.sample_rate,
        )
        return provider

    def instrument_app(self, app: FastAPI) -> None:
        if self.provider is None:
            return
        FastAPIInstrumentor.instrument_app(
            app, tracer_provider=self.provider, excluded_urls=UNTRACED_URLS
        )

    def instrument_engine(self, engine: AsyncEngine) -> None:
        if self.provider is None:
            return
        SQLAlchemyInstrumentor().instrument(
            engine=engine.sync_engine, tracer_provider=self.provider
        )

    def shutdown(self) -> None:
        """Flush pending spans."""
        if self.provider is not None:
            self.provider.shutdown()
            self.provider = None


_telemetry: AutomationTelemetry | None = None
_telemetry_lock = threading.RLock()


def get_telemetry() -> AutomationTelemetry | None:
    """Telemetry installed at startup, if tracing is enabled."""
    with _telemetry_lock:
        return _telemetry


def set_telemetry(telemetry: AutomationTelemetry | None) -> None:
    global _telemetry
    with _telemetry_lock:
        _telemetry = telemetry
