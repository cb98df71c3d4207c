from datetime import datetime, timezone
from fastapi import APIRouter
from webindex.models.schemas import HealthCheckResponse
from webindex.config import settings

router = APIRouter()

@router.get("/health", response_model=HealthCheckResponse, summary="Perform a health check")
async def health_check():
    """
    Performs a health check on the API service.
    Returns:
        HealthCheckResponse: The current status of the service.
    """
    return HealthCheckResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc),
        version=settings.APP_VERSION,
        vector_store=settings.VECTOR_STORE_BACKEND,
    )
