"""URL shortening service for the URL shortener application.

This module contains the ShortenedURLService class which implements business logic
for URL shortening and resolution.
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.events import EventSink, NullEventSink
from app.repositories.base import DuplicateEntityError, RepositoryError
from app.repositories.url_repository import URLRepository
from app.services.codegen import ShortCodeGenerator, is_valid_short_code
from app.services.exceptions import (
    InvalidURLError,
    ShortCodeExhaustedError,
    URLNotFoundError,
    URLStorageError,
)

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = ("http://", "https://")


class ShortenedURLService:
    """
    Service for URL shortening business logic.

    Shortening is dedup first, then generate, then insert. Reading the
    latest id and inserting are separate statements, so a concurrent
    request can claim the same code (or the same URL) in between; the
    losing insert is rejected by the database and the whole sequence is
    repeated, up to ``max_attempts`` times.
    """

    def __init__(
        self,
        url_repository: URLRepository,
        code_generator: Optional[ShortCodeGenerator] = None,
        events: Optional[EventSink] = None,
        max_attempts: Optional[int] = None,
    ):
        """
        Initialize the URL shortening service.

        Args:
            url_repository: Repository for URL data access
            code_generator: Source of new short codes (defaults to one over url_repository)
            events: Sink for structured service events
            max_attempts: Dedup/generate/insert rounds before giving up
        """
        self.url_repository = url_repository
        self.code_generator = code_generator or ShortCodeGenerator(url_repository)
        self.events = events or NullEventSink()
        self.max_attempts = max_attempts or settings.SHORTEN_MAX_ATTEMPTS

    async def shorten(self, db: AsyncSession, original_url: str) -> str:
        """
        Return the short code for a long URL, creating the mapping if needed.

        Args:
            db: Database session
            original_url: The URL to shorten, stored exactly as given

        Returns:
            str: The short code (without any domain prefix)

        Raises:
            InvalidURLError: If the URL is empty or not http/https
            ShortCodeExhaustedError: If every attempt lost an insert race
            URLStorageError: If the registry is unavailable
        """
        self.validate_url(original_url)

        for attempt in range(1, self.max_attempts + 1):
            try:
                existing = await self.url_repository.find_by_long_url(db, original_url)
                if existing is not None:
                    self.events.emit(
                        "url.deduplicated",
                        short_code=existing.short_code,
                        attempt=attempt,
                    )
                    return existing.short_code

                short_code = await self.code_generator.next_code(db)
                await self.url_repository.insert(db, original_url, short_code)
            except DuplicateEntityError as e:
                self.events.emit(
                    "url.insert_conflict",
                    field=e.field_name,
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                )
                continue
            except RepositoryError as e:
                logger.error(f"Registry unavailable while shortening: {e}")
                raise URLStorageError(f"Failed to shorten URL: {e}") from e

            self.events.emit("url.created", short_code=short_code, attempt=attempt)
            return short_code

        self.events.emit("url.shorten_exhausted", max_attempts=self.max_attempts)
        raise ShortCodeExhaustedError(
            f"Could not claim a short code after {self.max_attempts} attempts"
        )

    async def resolve(self, db: AsyncSession, short_code: str) -> str:
        """
        Look up the original URL for a short code.

        Raises:
            URLNotFoundError: If no mapping uses this code
            URLStorageError: If the registry is unavailable
        """
        url = None
        if is_valid_short_code(short_code):
            try:
                url = await self.url_repository.find_by_short_code(db, short_code)
            except RepositoryError as e:
                logger.error(f"Registry unavailable while resolving: {e}")
                raise URLStorageError(f"Failed to resolve short code '{short_code}': {e}") from e

        if url is None:
            self.events.emit("url.not_found", short_code=short_code)
            raise URLNotFoundError(f"URL with code '{short_code}' not found")

        self.events.emit("url.resolved", short_code=short_code)
        return url.original_url

    @staticmethod
    def validate_url(url: str) -> None:
        """
        Reject URLs the service will not store.

        Raises:
            InvalidURLError: If the URL is empty or lacks an http:// or https:// prefix
        """
        if not isinstance(url, str) or not url:
            raise InvalidURLError("URL must be a non-empty string")
        if not url.startswith(ALLOWED_SCHEMES):
            raise InvalidURLError(f"Invalid URL format: {url}")
