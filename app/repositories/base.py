"""Base repository implementation for the URL shortener application.

This module provides a generic BaseRepository class that follows the Repository pattern
for database operations, together with the storage error hierarchy every
repository reports through.
"""

from typing import Any, Dict, Generic, Type, TypeVar, Union
import asyncio
import logging

from pydantic import BaseModel
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import SQLModel

# Type variable for model types
T = TypeVar("T", bound=SQLModel)

logger = logging.getLogger(__name__)

# Failures that mean the database could not be reached or did not answer in time
STORAGE_FAILURES = (SQLAlchemyError, OSError, asyncio.TimeoutError)


class RepositoryError(Exception):
    """Base exception for repository errors."""
    pass


class StorageUnavailableError(RepositoryError):
    """The database is unreachable, timed out, or failed mid-operation."""
    pass


class DuplicateEntityError(RepositoryError):
    """Exception raised when a unique constraint is violated."""

    def __init__(self, model_type: Type[SQLModel], field_name: str, value: Any):
        self.model_type = model_type
        self.field_name = field_name
        self.value = value
        model_name = getattr(model_type, "__name__", "Entity")
        super().__init__(f"{model_name} with {field_name}={value} already exists")


class BaseRepository(Generic[T]):
    """
    Base repository implementing common operations for SQLModel entities.

    Type parameters:
        T: The SQLModel type this repository manages
    """

    # Columns carrying a unique constraint, checked in order when a
    # constraint violation has to be attributed to a field.
    unique_fields: tuple = ()

    def __init__(self, model_type: Type[T]):
        """
        Initialize the repository with a specific model type.

        Args:
            model_type: The SQLModel class this repository will work with
        """
        self.model_type = model_type

    async def count(self, db: AsyncSession) -> int:
        """
        Count the total number of entities.

        Raises:
            StorageUnavailableError: On database errors
        """
        try:
            query = select(func.count()).select_from(self.model_type)
            result = await db.execute(query)
            return result.scalar_one()
        except STORAGE_FAILURES as e:
            logger.error(f"Error counting {self.model_type.__name__} records: {e}")
            raise StorageUnavailableError(f"Database error counting entities: {e}") from e

    async def create(
        self,
        db: AsyncSession,
        data: Union[BaseModel, Dict[str, Any]],
        commit: bool = False,
    ) -> T:
        """
        Create a new entity.

        Args:
            db: Database session
            data: Entity data (either as a Pydantic model or dictionary)
            commit: Commit the transaction once the row is written

        Returns:
            The created entity

        Raises:
            DuplicateEntityError: If a unique constraint rejects the row
            StorageUnavailableError: On other database errors
        """
        if isinstance(data, BaseModel):
            data_dict = data.model_dump(exclude_unset=True)
        else:
            data_dict = data

        entity = self.model_type(**data_dict)
        try:
            db.add(entity)
            await db.flush()  # Constraint violations surface here
            await db.refresh(entity)
            if commit:
                await db.commit()
            return entity
        except IntegrityError as e:
            await self._safe_rollback(db)
            field_name = self._violated_field(e)
            raise DuplicateEntityError(
                self.model_type, field_name, data_dict.get(field_name, "unknown")
            ) from e
        except STORAGE_FAILURES as e:
            logger.error(f"Error creating {self.model_type.__name__}: {e}")
            await self._safe_rollback(db)
            raise StorageUnavailableError(f"Database error creating entity: {e}") from e

    def _violated_field(self, error: IntegrityError) -> str:
        """Name the unique column an IntegrityError refers to, if the driver says."""
        message = str(error.orig if error.orig is not None else error)
        for field_name in self.unique_fields:
            if field_name in message:
                return field_name
        return "unknown"

    async def _safe_rollback(self, db: AsyncSession) -> None:
        # The connection may already be gone; the original error is what matters
        try:
            await db.rollback()
        except STORAGE_FAILURES as e:
            logger.warning(f"Rollback after failed write also failed: {e}")
