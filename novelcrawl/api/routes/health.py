"""Health check endpoint for API monitoring.

Example:
    GET /health
    Response: {"status": "healthy"}
"""

from fastapi import APIRouter

from novelcrawl.api.models.responses import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Return API health status.

    Example:
        >>> response = client.get("/health")
        >>> response.json()
        {"status": "healthy"}
    """
    return HealthResponse(status="healthy")
