"""Request tracing middleware."""

import time

from fastapi import Request
from opentelemetry.trace import SpanKind
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.core.telemetry import get_meter, get_tracer

tracer = get_tracer("url_shortener.http")
meter = get_meter("url_shortener.http")

request_counter = meter.create_counter(
    name="url_shortener.http.requests",
    description="Number of HTTP requests",
    unit="1",
)

request_duration = meter.create_histogram(
    name="url_shortener.http.duration",
    description="Duration of HTTP requests",
    unit="ms",
)


def _route_template(request: Request) -> str:
    # Set by the router once a route matched; unmatched paths stay unnamed
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class TracingMiddleware(BaseHTTPMiddleware):
    """Opens a server span per request and records request metrics.

    The span is current while the route runs, so ``SpanEventSink`` attaches
    service events to it. Spans and metrics are labelled with the route
    template (``/{short_code}``) rather than the raw path, which would give
    every short code its own series.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        start_time = time.perf_counter()
        method = request.method

        with tracer.start_as_current_span(
            method,
            kind=SpanKind.SERVER,
            attributes={
                "http.method": method,
                "http.target": request.url.path,
                "http.user_agent": request.headers.get("user-agent", ""),
            },
        ) as span:
            response = await call_next(request)

            route = _route_template(request)
            span.update_name(f"{method} {route}")
            span.set_attribute("http.route", route)
            span.set_attribute("http.status_code", response.status_code)

            metric_attributes = {
                "http.method": method,
                "http.route": route,
                "http.status_code": response.status_code,
            }
            request_counter.add(1, metric_attributes)
            request_duration.record((time.perf_counter() - start_time) * 1000, metric_attributes)

            return response
