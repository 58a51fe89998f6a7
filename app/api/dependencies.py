"""API dependencies for FastAPI.

This module provides dependency injection functions for FastAPI endpoints
to access service instances.
"""

from fastapi import Depends

from app.core.config import settings
from app.core.events import EventSink, LoguruEventSink, MetricEventSink, SpanEventSink
from app.repositories.url_repository import URLRepository
from app.services.codegen import ShortCodeGenerator
from app.services.shortener import ShortenedURLService


async def get_url_repository():
    """Get an instance of the URL repository."""
    return URLRepository()


async def get_event_sink() -> EventSink:
    """Get the sink services report their events to."""
    return SpanEventSink(inner=MetricEventSink(inner=LoguruEventSink()))


async def get_shortener_service(
    url_repo: URLRepository = Depends(get_url_repository),
    events: EventSink = Depends(get_event_sink),
) -> ShortenedURLService:
    """Get an instance of the URL shortening service."""
    return ShortenedURLService(
        url_repository=url_repo,
        code_generator=ShortCodeGenerator(url_repo),
        events=events,
        max_attempts=settings.SHORTEN_MAX_ATTEMPTS,
    )


def get_base_url():
    """Get the base URL for shortened links."""
    return settings.BASE_URL
