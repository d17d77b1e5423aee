"""
Show browsing endpoints: show details and the seat map.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas.common import ErrorResponse
from ..schemas.show import ShowDetailResponse, ShowSeatMapResponse
from ..services.show_service import ShowService

router = APIRouter(prefix="/shows", tags=["shows"])


@router.get("/{show_id}", response_model=ShowDetailResponse, responses={404: {"model": ErrorResponse}})
async def get_show(show_id: int, db: AsyncSession = Depends(get_db)):
    """Get a show with its theatre and screen grid."""
    return await ShowService(db).get_show_detail(show_id)


@router.get(
    "/{show_id}/bookings",
    response_model=ShowSeatMapResponse,
    responses={404: {"model": ErrorResponse}}
)
async def get_show_seat_map(show_id: int, db: AsyncSession = Depends(get_db)):
    """
    Get the booked seats of a show.

    The map may lag a booking by the cache TTL; booking itself always checks
    committed inventory.
    """
    return await ShowService(db).get_seat_map(show_id)
