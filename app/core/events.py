"""Structured event sinks for service-level observability.

Services receive an ``EventSink`` through their constructor and report
domain events (``url.created``, ``url.insert_conflict``, ...) through it,
so they never touch a global logger or tracer directly.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from loguru import logger
from opentelemetry import trace

from app.core.telemetry import ShortenerInstruments, shortener_instruments


class EventSink(ABC):
    """Receiver for named events with flat key/value fields."""

    @abstractmethod
    def emit(self, event: str, **fields: Any) -> None:
        """Record one event."""


class NullEventSink(EventSink):
    """Discards every event."""

    def emit(self, event: str, **fields: Any) -> None:
        return None


class LoguruEventSink(EventSink):
    """Writes each event as a bound Loguru record.

    Events whose name is listed in ``warning_events`` are logged at WARNING,
    everything else at INFO.
    """

    def __init__(self, warning_events: Optional[set] = None):
        self.warning_events = warning_events or {
            "url.insert_conflict",
            "url.shorten_exhausted",
        }

    def emit(self, event: str, **fields: Any) -> None:
        level = "WARNING" if event in self.warning_events else "INFO"
        logger.bind(event=event, **fields).log(level, event)


class SpanEventSink(EventSink):
    """Attaches events to the current OpenTelemetry span.

    When no span is recording the event is only forwarded to ``inner``.
    """

    def __init__(self, inner: Optional[EventSink] = None):
        self.inner = inner or NullEventSink()

    def emit(self, event: str, **fields: Any) -> None:
        span = trace.get_current_span()
        if span.is_recording():
            span.add_event(event, attributes=_span_attributes(fields))
        self.inner.emit(event, **fields)


class MetricEventSink(EventSink):
    """Counts events on the registry instruments.

    Successful shortens also record how many attempts they took.
    """

    def __init__(
        self,
        inner: Optional[EventSink] = None,
        instruments: Optional[ShortenerInstruments] = None,
    ):
        self.inner = inner or NullEventSink()
        self.instruments = instruments or shortener_instruments()

    def emit(self, event: str, **fields: Any) -> None:
        self.instruments.events.add(1, {"event": event})
        if event in ("url.created", "url.deduplicated") and "attempt" in fields:
            self.instruments.shorten_attempts.record(fields["attempt"], {"event": event})
        self.inner.emit(event, **fields)


def _span_attributes(fields: Dict[str, Any]) -> Dict[str, Any]:
    # Span attributes only accept primitives
    attributes = {}
    for key, value in fields.items():
        if value is None:
            continue
        if isinstance(value, (str, bool, int, float)):
            attributes[key] = value
        else:
            attributes[key] = str(value)
    return attributes
