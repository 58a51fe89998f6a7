"""API request and response schemas.

This module contains Pydantic models for API request validation
and response serialization.
"""

from typing import Dict, Optional

from pydantic import BaseModel, StrictStr


class ShortenRequest(BaseModel):
    """Request schema for shortening a URL.

    The URL is kept as a plain string so it is stored exactly as submitted.
    """
    url: StrictStr


class ShortenResponse(BaseModel):
    """Response schema for a shortened URL."""
    short_code: str
    short_url: str  # Full URL including base domain


class ErrorResponse(BaseModel):
    """Response schema for errors."""
    detail: str
    error_id: Optional[str] = None


class HealthResponse(BaseModel):
    """Response schema for the detailed health check."""
    status: str
    version: str
    environment: str
    components: Dict[str, Dict]
