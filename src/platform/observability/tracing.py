"""
OpenTelemetry setup.

Spans come from three places: the FastAPI instrumentor (one per request), the
SQLAlchemy instrumentor (one per statement) and the use cases themselves
(`use_case.create_reservation`, `use_case.reconcile_payment`, ...). Nothing is
exported unless OTEL_EXPORTER_OTLP_ENDPOINT or OTEL_CONSOLE_EXPORT is set.
"""

import os
from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import (
    DEPLOYMENT_ENVIRONMENT,
    SERVICE_NAME,
    SERVICE_VERSION,
    Resource,
)
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased

from src.platform.config.core_setting import settings


class TracingConfig:
    """
    Usage:
        tracing = TracingConfig(service_name='yard-parking')
        tracing.setup()
        tracing.instrument_sqlalchemy(engine=database.engine)
        ...
        tracing.shutdown()
    """

    def __init__(
        self,
        *,
        service_name: str,
        otlp_endpoint: str | None = None,
        enable_console: bool | None = None,
        sample_ratio: float | None = None,
    ) -> None:
        self.service_name = service_name
        self.otlp_endpoint = otlp_endpoint or settings.OTEL_EXPORTER_OTLP_ENDPOINT
        self.enable_console = (
            settings.OTEL_CONSOLE_EXPORT if enable_console is None else enable_console
        )
        self.sample_ratio = settings.TRACE_SAMPLE_RATIO if sample_ratio is None else sample_ratio
        self._provider: TracerProvider | None = None

    @property
    def enabled(self) -> bool:
        return bool(self.otlp_endpoint or self.enable_console)

    def _resource(self) -> Resource:
        return Resource(
            attributes={
                SERVICE_NAME: self.service_name,
                SERVICE_VERSION: settings.VERSION,
                DEPLOYMENT_ENVIRONMENT: os.getenv('DEPLOY_ENV', 'local_dev'),
            }
        )

    def setup(self) -> None:
        if not self.enabled:
            return

        # Follow the caller's decision when a traceparent header arrives
        sampler = ParentBased(root=TraceIdRatioBased(self.sample_ratio))
        self._provider = TracerProvider(resource=self._resource(), sampler=sampler)

        if self.otlp_endpoint:
            self._provider.add_span_processor(
                BatchSpanProcessor(OTLPSpanExporter(endpoint=self.otlp_endpoint))
            )
        if self.enable_console:
            self._provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

        trace.set_tracer_provider(self._provider)

    def instrument_fastapi(self, *, app: Any) -> None:
        if self.enabled:
            # Probes and scrapes would drown out reservation traffic
            FastAPIInstrumentor.instrument_app(app, excluded_urls='health,metrics')

    def instrument_sqlalchemy(self, *, engine: Any) -> None:
        if self.enabled:
            # AsyncEngine is instrumented through the sync engine it wraps
            SQLAlchemyInstrumentor().instrument(engine=getattr(engine, 'sync_engine', engine))

    def shutdown(self) -> None:
        if self._provider:
            self._provider.shutdown()
