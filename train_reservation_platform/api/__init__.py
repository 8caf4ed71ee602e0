"""API endpoints for the Train Reservation Platform."""

from fastapi import APIRouter
from .auth import router as auth_router
from .seats import router as seats_router
from .reservations import router as reservations_router
from .consistency import router as consistency_router

# Create main API router
api_router = APIRouter(prefix="/api/v1")

# Include all routers
api_router.include_router(auth_router)
api_router.include_router(seats_router)
api_router.include_router(reservations_router)
api_router.include_router(consistency_router)

__all__ = ["api_router"]
