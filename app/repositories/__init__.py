"""Repository layer for the URL shortener application.

This module provides repository classes that abstract database operations
and implement the Repository pattern for clean separation of concerns.
"""

from app.repositories.base import (
    BaseRepository,
    RepositoryError,
    StorageUnavailableError,
    DuplicateEntityError
)
from app.repositories.url_repository import URLRepository

__all__ = [
    # Base classes and exceptions
    "BaseRepository",
    "RepositoryError",
    "StorageUnavailableError",
    "DuplicateEntityError",

    # Concrete repositories
    "URLRepository",
]
