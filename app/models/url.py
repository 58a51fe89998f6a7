"""URL shortener data models.

This module defines the ShortURL model for storing shortened URLs in the database.
"""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Index, Text
from sqlmodel import Field, SQLModel

# Width of the short_code column; bounds the codes the generator may issue
SHORT_CODE_MAX_LENGTH = 10


class ShortURLBase(SQLModel):
    """Base model for short URL data."""

    original_url: str = Field(
        sa_type=Text,
        unique=True,
        nullable=False,
        description="The original (long) URL to redirect to, stored exactly as submitted"
    )
    short_code: str = Field(
        max_length=SHORT_CODE_MAX_LENGTH,
        unique=True,
        nullable=False,
        description="Base62 code derived from the record's sequence number",
    )


class ShortURL(ShortURLBase, table=True):
    """
    Short URL model for storing shortened URLs in the database.

    Records are written once by the shorten operation and never updated
    or deleted. Both ``original_url`` and ``short_code`` carry unique
    constraints; the database, not the application, is the final arbiter
    of uniqueness.
    """

    __tablename__ = "short_urls"

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_type=DateTime(timezone=True),
        nullable=False,
        description="Timestamp when this short URL was created"
    )

    __table_args__ = (
        # Supports the "most recently created" lookup used for code generation
        Index("ix_short_urls_created_at", "created_at"),
    )
