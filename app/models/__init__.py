"""
Data models for the URL shortener application.

This module imports and exports all SQLModel models used in the application.
"""

from app.models.url import (
    SHORT_CODE_MAX_LENGTH,
    ShortURL,
    ShortURLBase,
)

__all__ = [
    "SHORT_CODE_MAX_LENGTH",
    "ShortURL",
    "ShortURLBase",
]
