"""Health check endpoints for monitoring application status."""

from fastapi import APIRouter, Response, status

from app.api import schemas
from app.core.config import settings
from app.db.base import DatabaseHealthCheck

router = APIRouter(tags=["health"])


@router.get(
    "/health-check",
    status_code=status.HTTP_200_OK,
    summary="Liveness probe",
    response_class=Response,
)
async def health_check():
    """Simple check that the application is running."""
    return Response(status_code=status.HTTP_200_OK)


@router.get(
    "/health-status",
    response_model=schemas.HealthResponse,
    summary="Get system health status",
    response_description="Health status of the application and its database"
)
async def detailed_health_check():
    """Check health of the database connection."""
    database = await DatabaseHealthCheck.check_connection()
    return schemas.HealthResponse(
        status="healthy" if database["status"] == "healthy" else "degraded",
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT.value,
        components={"database": database},
    )
