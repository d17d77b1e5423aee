"""
Theatre endpoints: the parking map.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas.common import ErrorResponse
from ..schemas.show import ParkingMapResponse
from ..services.show_service import ShowService

router = APIRouter(prefix="/theatres", tags=["theatres"])


@router.get(
    "/{theatre_id}/parkings",
    response_model=ParkingMapResponse,
    responses={404: {"model": ErrorResponse}}
)
async def get_parking_map(theatre_id: int, db: AsyncSession = Depends(get_db)):
    """Get the parking floors of a theatre and the spots already reserved."""
    return await ShowService(db).get_parking_map(theatre_id)
