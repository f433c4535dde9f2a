"""
OpenTelemetry setup for the translation worker.

When telemetry is disabled no SDK providers are installed, so the API's
default no-op tracer and meter are returned.
"""

import logging

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.instrumentation.redis import RedisInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from .config import Settings

logger = logging.getLogger(__name__)

INSTRUMENTATION_NAME = "translation-worker"
METRIC_EXPORT_INTERVAL_MS = 60_000


def _install_tracing(resource: Resource, endpoint: str) -> None:
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, insecure=True))
    )
    trace.set_tracer_provider(provider)


def _install_metrics(resource: Resource, endpoint: str) -> None:
    reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=endpoint, insecure=True),
        export_interval_millis=METRIC_EXPORT_INTERVAL_MS,
    )
    metrics.set_meter_provider(MeterProvider(resource=resource, metric_readers=[reader]))


def _instrument_clients() -> None:
    HTTPXClientInstrumentor().instrument()
    RedisInstrumentor().instrument()


def setup_telemetry(settings: Settings, service_version: str = "1.0.0") -> None:
    """
    Install OTLP exporters for traces and metrics and instrument the
    httpx and redis clients used by the worker.

    Each step is independent: a failing exporter is logged and the worker
    keeps running with whatever did install.
    """
    if not settings.OTEL_ENABLED:
        logger.info("Telemetry off (OTEL_ENABLED=false)")
        return

    endpoint = settings.OTEL_EXPORTER_OTLP_ENDPOINT
    resource = Resource.create(
        {
            SERVICE_NAME: settings.SERVICE_NAME,
            SERVICE_VERSION: service_version,
            "deployment.environment": settings.ENVIRONMENT,
        }
    )

    steps = (
        ("tracing", lambda: _install_tracing(resource, endpoint)),
        ("metrics", lambda: _install_metrics(resource, endpoint)),
        ("client instrumentation", _instrument_clients),
    )
    for name, install in steps:
        try:
            install()
        except Exception as exc:
            logger.warning("Telemetry %s unavailable: %s", name, exc)
        else:
            logger.info("Telemetry %s installed (endpoint=%s)", name, endpoint)


def get_tracer():
    return trace.get_tracer(INSTRUMENTATION_NAME)


def get_meter():
    return metrics.get_meter(INSTRUMENTATION_NAME)


class TranslationMetrics:
    """Process-wide counters for the translation pipeline."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            instance = super().__new__(cls)
            instance._build(get_meter())
            cls._instance = instance
        return cls._instance

    def _build(self, meter) -> None:
        self.jobs_completed = meter.create_counter(
            name="translation.jobs_completed",
            description="Number of translation jobs that produced an output file",
            unit="1",
        )
        self.jobs_failed = meter.create_counter(
            name="translation.jobs_failed",
            description="Number of translation jobs that failed",
            unit="1",
        )
        self.chunks_translated = meter.create_counter(
            name="translation.chunks_translated",
            description="Number of text chunks sent for translation",
            unit="1",
        )
        self.chunk_failures = meter.create_counter(
            name="translation.chunk_failures",
            description="Number of chunks replaced by a placeholder",
            unit="1",
        )
        self.job_duration = meter.create_histogram(
            name="translation.job_duration",
            description="Time to translate one document",
            unit="ms",
        )

    def record_job_completed(self, file_kind: str, duration_ms: float) -> None:
        self.jobs_completed.add(1, {"file_kind": file_kind})
        self.job_duration.record(duration_ms, {"file_kind": file_kind})

    def record_job_failed(self, error_type: str) -> None:
        self.jobs_failed.add(1, {"error_type": error_type})

    def record_chunks(self, total: int, failed: int) -> None:
        self.chunks_translated.add(total)
        if failed:
            self.chunk_failures.add(failed)
