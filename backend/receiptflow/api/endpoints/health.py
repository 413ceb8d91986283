"""Health check endpoint for monitoring."""
from typing import Any, Dict

from fastapi import APIRouter, Depends

from receiptflow.api.dependencies import get_settings
from receiptflow.core.config import Settings

router = APIRouter()


@router.api_route("/health", methods=["GET", "HEAD"])
async def health_check(settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    """Basic health check endpoint (supports GET & HEAD)."""
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "version": settings.VERSION,
    }
