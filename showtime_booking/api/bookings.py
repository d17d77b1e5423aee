"""
FastAPI routes for creating and listing seat bookings.
"""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models.user import User
from ..schemas.booking import BookingCreateRequest, BookingReceipt, UserBookingsResponse
from ..schemas.common import ErrorResponse
from ..services.booking_service import BookingService
from ..services.show_service import ShowService
from ..utils.dependencies import get_current_user
from ..utils.exceptions import ErrorCode

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post(
    "",
    response_model=BookingReceipt,
    status_code=status.HTTP_201_CREATED,
    responses={
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse, "description": "Seat or parking spot already taken"},
        422: {"model": ErrorResponse},
    },
)
async def create_booking(
    request: BookingCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Book seats for a show, optionally with a parking spot and points redemption.

    Seats are committed before parking. When the seats succeed but the parking
    spot was taken, the response is 409 carrying the committed receipt so the
    client can show which seats were kept.
    """
    # Rollbacks inside the engine expire ORM state; keep the plain id
    user_id = current_user.id
    booking_service = BookingService(db)
    receipt = await booking_service.create_booking(
        user_id=user_id,
        show_id=request.show_id,
        seats=request.seats,
        parking_spot=request.parking_reservation,
        points_to_redeem=request.points_used,
    )

    if receipt.parking_error:
        logger.info(
            f"Booking for user {user_id} kept {receipt.seats_booked} seats without parking: "
            f"{receipt.parking_error}"
        )
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={
                "error": receipt.parking_error,
                "error_code": ErrorCode.PARKING_SPOT_TAKEN.value,
                **receipt.model_dump(mode="json"),
            }
        )

    return receipt


@router.get("", response_model=UserBookingsResponse)
async def get_my_bookings(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get the current user's seat bookings grouped by show."""
    return await ShowService(db).get_user_bookings(current_user.id)
