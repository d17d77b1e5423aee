"""API endpoints for the Showtime booking service."""

from fastapi import APIRouter
from .bookings import router as bookings_router
from .shows import router as shows_router
from .theatres import router as theatres_router
from .users import router as users_router

# Create main API router
api_router = APIRouter(prefix="/api/v1")

# Include all routers
api_router.include_router(bookings_router)
api_router.include_router(shows_router)
api_router.include_router(theatres_router)
api_router.include_router(users_router)

__all__ = ["api_router"]
