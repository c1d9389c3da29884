"""Health check endpoints."""

from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends

from relay.api.deps import get_app_settings
from relay.config import Settings

router = APIRouter()


@router.get("/health")
async def health_check(settings: Annotated[Settings, Depends(get_app_settings)]) -> dict:
    """Liveness check endpoint.

    Returns 200 if the process is running.
    Does not check database or other dependencies.
    """
    return {
        "message": "Server is running",
        "timestamp": datetime.now(UTC).isoformat(),
        "environment": settings.relay_env.value,
    }
