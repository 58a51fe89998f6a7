"""OpenTelemetry setup for the URL shortener.

Traces and metrics are exported over OTLP (gRPC or HTTP, per
``OTEL_EXPORTER_OTLP_PROTOCOL``). When ``OTEL_ENABLED`` is false nothing is
installed and the API's no-op providers stay in place, so instruments created
through ``get_meter`` cost nothing.
"""

import logging
from contextlib import suppress
from functools import lru_cache
from typing import Dict, NamedTuple, Optional, Tuple

from opentelemetry import metrics, trace
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import MetricExporter, PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SpanExporter
from opentelemetry.sdk.trace.sampling import (
    ParentBasedTraceIdRatio,
    Sampler,
    TraceIdRatioBased,
)

from app.core.config import settings

logger = logging.getLogger(__name__)

INSTRUMENTATION_NAME = "url_shortener"


class ShortenerInstruments(NamedTuple):
    """Metric instruments describing registry activity."""
    events: metrics.Counter
    shorten_attempts: metrics.Histogram


@lru_cache
def setup_telemetry() -> Tuple[Optional[TracerProvider], Optional[MeterProvider]]:
    """Install tracer and meter providers once per process."""
    if not settings.OTEL_ENABLED:
        logger.info("OpenTelemetry instrumentation is disabled")
        return None, None

    resource = Resource.create({
        "service.name": settings.OTEL_SERVICE_NAME,
        "service.version": settings.APP_VERSION,
        "deployment.environment": settings.ENVIRONMENT.value,
        **_parse_resource_attributes(settings.OTEL_RESOURCE_ATTRIBUTES)
    })

    try:
        span_exporter, metric_exporter = _create_exporters(settings.OTEL_EXPORTER_OTLP_PROTOCOL)
    except Exception as e:
        logger.error(f"Failed to create OTLP exporters, telemetry stays disabled: {e}")
        return None, None

    tracer_provider = TracerProvider(
        resource=resource,
        sampler=_create_sampler(
            settings.OTEL_TRACES_SAMPLER,
            float(settings.OTEL_TRACES_SAMPLER_ARG)
        )
    )
    tracer_provider.add_span_processor(BatchSpanProcessor(span_exporter))
    trace.set_tracer_provider(tracer_provider)

    meter_provider = MeterProvider(
        resource=resource,
        metric_readers=[
            PeriodicExportingMetricReader(
                metric_exporter,
                export_interval_millis=settings.OTEL_METRICS_EXPORT_INTERVAL_MILLIS
            )
        ],
    )
    metrics.set_meter_provider(meter_provider)

    logger.info(
        f"OpenTelemetry exporting to {settings.OTEL_EXPORTER_OTLP_ENDPOINT} "
        f"over {settings.OTEL_EXPORTER_OTLP_PROTOCOL}"
    )
    return tracer_provider, meter_provider


def _create_exporters(protocol: str) -> Tuple[SpanExporter, MetricExporter]:
    if protocol.lower() == "grpc":
        from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

        return (
            OTLPSpanExporter(endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT, insecure=True),
            OTLPMetricExporter(endpoint=settings.OTEL_EXPORTER_OTLP_METRICS_ENDPOINT, insecure=True),
        )

    from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
    from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter

    return (
        OTLPSpanExporter(endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT),
        OTLPMetricExporter(endpoint=settings.OTEL_EXPORTER_OTLP_METRICS_ENDPOINT),
    )


def _create_sampler(sampler_type: str, sampler_arg: float) -> Sampler:
    if sampler_type.lower() == "parentbased_traceidratio":
        return ParentBasedTraceIdRatio(sampler_arg)
    return TraceIdRatioBased(sampler_arg)


def _parse_resource_attributes(attributes_str: str) -> Dict[str, str]:
    """Parse resource attributes from ``key=value,key=value`` format."""
    attributes = {}
    for pair in filter(None, (attributes_str or "").split(",")):
        with suppress(ValueError):
            key, value = pair.strip().split("=", 1)
            attributes[key] = value
    return attributes


def get_tracer(name: str = INSTRUMENTATION_NAME) -> trace.Tracer:
    return trace.get_tracer(name)


def get_meter(name: str = INSTRUMENTATION_NAME) -> metrics.Meter:
    return metrics.get_meter(name)


@lru_cache
def shortener_instruments() -> ShortenerInstruments:
    """Create the registry instruments on the current meter provider."""
    meter = get_meter(f"{INSTRUMENTATION_NAME}.service")
    return ShortenerInstruments(
        events=meter.create_counter(
            name="url_shortener.events",
            description="Shorten and resolve outcomes, by event name",
            unit="1",
        ),
        shorten_attempts=meter.create_histogram(
            name="url_shortener.shorten.attempts",
            description="Dedup/generate/insert rounds needed per shorten call",
            unit="1",
        ),
    )
