"""API route definitions.

Uses a factory pattern to avoid import-time settings loading.
"""

from fastapi import APIRouter

from relay.api.routes.auth import router as auth_router
from relay.api.routes.chat import router as chat_router
from relay.api.routes.health import router as health_router


def create_api_router() -> APIRouter:
    """Create the API router with all routes registered."""
    api_router = APIRouter()
    api_router.include_router(health_router, tags=["health"])
    api_router.include_router(auth_router)
    api_router.include_router(chat_router)
    return api_router


__all__ = ["create_api_router"]
