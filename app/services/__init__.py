"""Service layer for the URL shortener application.

This package contains service classes implementing the business logic of the application.
Services orchestrate interactions between repositories and provide domain-specific operations.
"""

from app.services.codegen import ShortCodeGenerator
from app.services.shortener import ShortenedURLService

__all__ = ["ShortCodeGenerator", "ShortenedURLService"]
