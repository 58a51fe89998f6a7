"""URL shortening endpoint."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import schemas
from app.api.dependencies import get_base_url, get_shortener_service
from app.db.session import get_db
from app.services.shortener import ShortenedURLService
from app.services.exceptions import (
    InvalidURLError,
    ShortCodeExhaustedError,
    URLStorageError,
)

router = APIRouter(tags=["shortener"])


@router.post(
    "/generate",
    response_model=schemas.ShortenResponse,
    status_code=status.HTTP_200_OK,
    responses={
        400: {"model": schemas.ErrorResponse, "description": "Invalid URL"},
        500: {"model": schemas.ErrorResponse, "description": "No short code could be claimed"},
        503: {"model": schemas.ErrorResponse, "description": "Storage unavailable"},
    }
)
async def generate_short_url(
    body: schemas.ShortenRequest,
    db: AsyncSession = Depends(get_db),
    shortener_service: ShortenedURLService = Depends(get_shortener_service),
    base_url: str = Depends(get_base_url)
):
    """Shorten a URL, returning the existing code if it was shortened before."""
    try:
        short_code = await shortener_service.shorten(db, body.url)
    except InvalidURLError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ShortCodeExhaustedError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except URLStorageError as e:
        raise HTTPException(status_code=503, detail=str(e))

    return schemas.ShortenResponse(
        short_code=short_code,
        short_url=f"{base_url}/{short_code}",
    )
