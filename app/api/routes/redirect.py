"""URL redirection endpoint."""

from fastapi import APIRouter, Depends, HTTPException, status
from starlette.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import schemas
from app.api.dependencies import get_shortener_service
from app.db.session import get_db
from app.services.shortener import ShortenedURLService
from app.services.exceptions import URLNotFoundError, URLStorageError

router = APIRouter(tags=["redirect"])


@router.get(
    "/{short_code}",
    response_class=RedirectResponse,
    status_code=status.HTTP_308_PERMANENT_REDIRECT,
    responses={
        404: {"model": schemas.ErrorResponse, "description": "Short URL not found"},
        503: {"model": schemas.ErrorResponse, "description": "Storage unavailable"},
    }
)
async def redirect_to_original_url(
    short_code: str,
    db: AsyncSession = Depends(get_db),
    shortener_service: ShortenedURLService = Depends(get_shortener_service),
):
    """Permanently redirect a short code to its original URL."""
    try:
        original_url = await shortener_service.resolve(db, short_code)
    except URLNotFoundError:
        raise HTTPException(status_code=404, detail="Short URL not found.")
    except URLStorageError as e:
        raise HTTPException(status_code=503, detail=str(e))

    return RedirectResponse(
        url=original_url,
        status_code=status.HTTP_308_PERMANENT_REDIRECT,
    )
