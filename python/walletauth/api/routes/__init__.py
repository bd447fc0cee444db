"""API route definitions.

Uses a factory so that importing route modules never loads settings.
"""

from fastapi import APIRouter

from walletauth.api.routes.health import router as health_router
from walletauth.api.routes.me import router as me_router


def create_api_router() -> APIRouter:
    """Create and configure the API router."""
    api_router = APIRouter()
    api_router.include_router(health_router, tags=["health"])
    api_router.include_router(me_router, tags=["user"])
    return api_router


__all__ = ["create_api_router"]
