"""URL Repository for the URL shortener application.

This module provides the URLRepository class, the registry of short-code to
long-URL mappings. It is the only component that talks to the ``short_urls``
table.
"""

from typing import Optional

from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.url import ShortURL
from app.repositories.base import (
    STORAGE_FAILURES,
    BaseRepository,
    StorageUnavailableError,
)


class URLRepository(BaseRepository[ShortURL]):
    """
    Repository for ShortURL model database operations.

    Lookups are single round-trips with no side effects. ``insert`` writes
    and commits one row; uniqueness of ``original_url`` and ``short_code``
    is enforced by the database constraints and reported as
    ``DuplicateEntityError``.
    """

    unique_fields = ("original_url", "short_code")

    def __init__(self):
        """Initialize the repository with the ShortURL model type."""
        super().__init__(ShortURL)

    async def find_by_long_url(self, db: AsyncSession, original_url: str) -> Optional[ShortURL]:
        """
        Find the mapping for an exact original URL.

        Args:
            db: Database session
            original_url: The long URL, compared byte-for-byte

        Returns:
            The ShortURL if found, None otherwise

        Raises:
            StorageUnavailableError: On database errors
        """
        try:
            query = select(self.model_type).where(self.model_type.original_url == original_url)
            result = await db.execute(query)
            return result.scalar_one_or_none()
        except STORAGE_FAILURES as e:
            raise StorageUnavailableError(f"Error retrieving URL by original URL: {e}") from e

    async def find_by_short_code(self, db: AsyncSession, short_code: str) -> Optional[ShortURL]:
        """
        Find a URL by its short code.

        Raises:
            StorageUnavailableError: On database errors
        """
        try:
            query = select(self.model_type).where(self.model_type.short_code == short_code)
            result = await db.execute(query)
            return result.scalar_one_or_none()
        except STORAGE_FAILURES as e:
            raise StorageUnavailableError(f"Error retrieving URL by short code: {e}") from e

    async def highest_id(self, db: AsyncSession) -> Optional[int]:
        """
        Return the id of the most recently created mapping.

        Rows are ordered by ``created_at`` descending; rows sharing a
        timestamp are ordered by ``id`` descending.

        Returns:
            The id, or None when no mapping exists yet

        Raises:
            StorageUnavailableError: On database errors
        """
        try:
            query = (
                select(self.model_type.id)
                .order_by(desc(self.model_type.created_at), desc(self.model_type.id))
                .limit(1)
            )
            result = await db.execute(query)
            return result.scalar_one_or_none()
        except STORAGE_FAILURES as e:
            raise StorageUnavailableError(f"Error retrieving latest URL id: {e}") from e

    async def insert(self, db: AsyncSession, original_url: str, short_code: str) -> ShortURL:
        """
        Persist and commit a new mapping.

        ``created_at`` is set to the current time by the model default.
        A rejected insert is rolled back before the error is raised, so the
        session can be reused for another attempt.

        Raises:
            DuplicateEntityError: If original_url or short_code is already taken
            StorageUnavailableError: On other database errors
        """
        return await self.create(
            db,
            {"original_url": original_url, "short_code": short_code},
            commit=True,
        )
