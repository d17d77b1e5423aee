"""
Inventory store: durable record of committed seats and parking spots.
"""

import logging
from typing import Iterable, List, Optional, Set, Tuple
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import Parking, ParkingReservation, SeatBooking, Show

logger = logging.getLogger(__name__)

SeatKey = Tuple[int, int]
SpotKey = Tuple[int, int, int]


class InventoryStore:
    """Query and insert contract over the seat and parking tables.

    Inserts rely on the partial unique indexes on the active coordinate
    tuples; a losing concurrent insert raises ``IntegrityError`` which the
    caller translates into a conflict.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_show(self, show_id: int) -> Optional[Show]:
        """Load a show with its screen grid, or None."""
        result = await self.session.execute(
            select(Show)
            .options(selectinload(Show.screen))
            .where(Show.id == show_id)
        )
        return result.scalar_one_or_none()

    async def get_parking(self, parking_id: int) -> Optional[Parking]:
        result = await self.session.execute(
            select(Parking).where(Parking.id == parking_id)
        )
        return result.scalar_one_or_none()

    async def booked_seats(self, show_id: int) -> Set[SeatKey]:
        """Coordinates of all active seat bookings for a show."""
        result = await self.session.execute(
            select(SeatBooking.row_number, SeatBooking.col_number)
            .where(SeatBooking.show_id == show_id, SeatBooking.is_booked.is_(True))
        )
        return {(row, col) for row, col in result.all()}

    async def reserved_spots(self, theatre_id: int) -> Set[SpotKey]:
        """Coordinates of all active parking reservations for a theatre."""
        result = await self.session.execute(
            select(
                ParkingReservation.floor_number,
                ParkingReservation.row_number,
                ParkingReservation.col_number,
            )
            .where(
                ParkingReservation.theatre_id == theatre_id,
                ParkingReservation.is_reserved.is_(True),
            )
        )
        return {(floor, row, col) for floor, row, col in result.all()}

    async def insert_seat_bookings(
        self,
        show_id: int,
        theatre_id: int,
        screen_id: int,
        user_id: UUID,
        seats: Iterable[SeatKey],
    ) -> List[SeatBooking]:
        """Insert and commit one booking row per seat in a single transaction."""
        rows = [
            SeatBooking(
                theatre_id=theatre_id,
                screen_id=screen_id,
                show_id=show_id,
                user_id=user_id,
                row_number=row,
                col_number=col,
                is_booked=True,
            )
            for row, col in seats
        ]
        try:
            self.session.add_all(rows)
            await self.session.flush()
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        logger.info(f"Committed {len(rows)} seat bookings for show {show_id}")
        return rows

    async def insert_parking_reservation(
        self,
        theatre_id: int,
        parking_id: int,
        show_id: int,
        user_id: UUID,
        spot: SpotKey,
    ) -> ParkingReservation:
        """Insert and commit a parking reservation row."""
        floor, row, col = spot
        reservation = ParkingReservation(
            theatre_id=theatre_id,
            parking_id=parking_id,
            show_id=show_id,
            user_id=user_id,
            floor_number=floor,
            row_number=row,
            col_number=col,
            is_reserved=True,
        )
        try:
            self.session.add(reservation)
            await self.session.flush()
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return reservation

    async def decrement_available_seats(self, show_id: int, count: int) -> None:
        """Relative decrement of the advisory counter, committed on its own."""
        try:
            await self.session.execute(
                update(Show)
                .where(Show.id == show_id)
                .values(available_seats=Show.available_seats - count)
                .execution_options(synchronize_session=False)
            )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
