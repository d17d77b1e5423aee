"""
Read-side service for show details, seat maps, parking maps and history.
"""

import logging
from typing import Dict
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..cache import get_cache, CacheKeyBuilder, CacheTTL
from ..config import get_settings
from ..models import Parking, ParkingReservation, SeatBooking, Show, Theatre
from ..schemas.booking import BookedSeat, UserBookingsResponse, UserShowBookings
from ..schemas.show import (
    ParkingFloorInfo,
    ParkingMapResponse,
    ScreenInfo,
    SeatState,
    ShowDetailResponse,
    ShowInfo,
    ShowSeatMapResponse,
    TheatreInfo,
)
from ..utils.exceptions import ShowNotFoundError, TheatreNotFoundError

logger = logging.getLogger(__name__)


class ShowService:
    """Service class for browsing shows and their inventory."""

    def __init__(self, db: AsyncSession):
        """Initialize the show service with database session."""
        self.db = db
        self.cache = get_cache()
        self.settings = get_settings()

    async def get_show_detail(self, show_id: int) -> ShowDetailResponse:
        """
        Get a show with its theatre and screen, cached.

        Raises:
            ShowNotFoundError: If the show does not exist
        """
        cache_key = CacheKeyBuilder.show_detail(show_id)
        cached = await self.cache.get(cache_key)
        if cached:
            return ShowDetailResponse(**cached)

        result = await self.db.execute(
            select(Show)
            .options(selectinload(Show.theatre), selectinload(Show.screen))
            .where(Show.id == show_id)
        )
        show = result.scalar_one_or_none()
        if show is None:
            raise ShowNotFoundError(show_id)

        detail = ShowDetailResponse(
            show=ShowInfo.model_validate(show),
            theatre=TheatreInfo.model_validate(show.theatre),
            screen=ScreenInfo.model_validate(show.screen),
        )
        await self.cache.set(cache_key, detail.model_dump(mode="json"), ttl=CacheTTL.SHOW_DETAIL)
        return detail

    async def get_seat_map(self, show_id: int) -> ShowSeatMapResponse:
        """
        Get the booked seats of a show for painting the seat grid.

        Raises:
            ShowNotFoundError: If the show does not exist
        """
        cache_key = CacheKeyBuilder.seat_map(show_id)
        cached = await self.cache.get(cache_key)
        if cached:
            logger.debug(f"Seat map cache hit for show {show_id}")
            return ShowSeatMapResponse(**cached)

        show_exists = await self.db.scalar(select(Show.id).where(Show.id == show_id))
        if show_exists is None:
            raise ShowNotFoundError(show_id)

        result = await self.db.execute(
            select(SeatBooking.row_number, SeatBooking.col_number)
            .where(SeatBooking.show_id == show_id, SeatBooking.is_booked.is_(True))
            .order_by(SeatBooking.row_number, SeatBooking.col_number)
        )
        seat_map = ShowSeatMapResponse(
            bookings=[SeatState(row_number=row, col_number=col) for row, col in result.all()]
        )
        await self.cache.set(cache_key, seat_map.model_dump(mode="json"), ttl=self.settings.seat_map_cache_ttl)
        return seat_map

    async def get_parking_map(self, theatre_id: int) -> ParkingMapResponse:
        """
        Get the parking floors of a theatre and the spots already reserved.

        Raises:
            TheatreNotFoundError: If the theatre does not exist
        """
        cache_key = CacheKeyBuilder.parking_map(theatre_id)
        cached = await self.cache.get(cache_key)
        if cached:
            return ParkingMapResponse(**cached)

        theatre_exists = await self.db.scalar(select(Theatre.id).where(Theatre.id == theatre_id))
        if theatre_exists is None:
            raise TheatreNotFoundError(theatre_id)

        parkings = await self.db.execute(
            select(Parking)
            .where(Parking.theatre_id == theatre_id)
            .order_by(Parking.floor_number)
        )
        reservations = await self.db.execute(
            select(ParkingReservation)
            .where(
                ParkingReservation.theatre_id == theatre_id,
                ParkingReservation.is_reserved.is_(True),
            )
        )

        parking_map = ParkingMapResponse(
            parkings=[ParkingFloorInfo.model_validate(p) for p in parkings.scalars().all()],
            reserved_spots=sorted({r.spot_key for r in reservations.scalars().all()}),
        )
        await self.cache.set(cache_key, parking_map.model_dump(mode="json"), ttl=CacheTTL.PARKING_MAP)
        return parking_map

    async def get_user_bookings(self, user_id: UUID) -> UserBookingsResponse:
        """Get the user's seat bookings grouped by show, newest first."""
        result = await self.db.execute(
            select(SeatBooking)
            .options(
                selectinload(SeatBooking.show).selectinload(Show.theatre),
                selectinload(SeatBooking.show).selectinload(Show.screen),
            )
            .where(SeatBooking.user_id == user_id, SeatBooking.is_booked.is_(True))
            .order_by(SeatBooking.booked_at.desc(), SeatBooking.id)
        )

        grouped: Dict[int, UserShowBookings] = {}
        for booking in result.scalars().all():
            show = booking.show
            if show.id not in grouped:
                grouped[show.id] = UserShowBookings(
                    show_id=show.id,
                    movie_name=show.movie_name,
                    language=show.language,
                    show_date=show.show_date,
                    start_time=show.start_time,
                    end_time=show.end_time,
                    ticket_price=float(show.ticket_price),
                    theatre_name=show.theatre.theatre_name,
                    city=show.theatre.city,
                    state=show.theatre.state,
                    screen_number=show.screen.screen_number,
                    booked_at=booking.booked_at,
                )

            group = grouped[show.id]
            group.seats.append(
                BookedSeat(id=booking.id, row_number=booking.row_number, col_number=booking.col_number)
            )
            group.total_amount += float(show.ticket_price)

        return UserBookingsResponse(bookings=list(grouped.values()))
