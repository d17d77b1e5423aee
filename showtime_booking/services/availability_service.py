"""
Availability checks for seats and parking spots.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from .inventory_service import InventoryStore, SeatKey

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeatAvailability:
    """Outcome of a seat check; names the first taken seat in request order."""
    available: bool
    conflicting_seat: Optional[SeatKey] = None


@dataclass(frozen=True)
class ParkingAvailability:
    available: bool


class AvailabilityChecker:
    """Read-only availability checks against committed inventory.

    A check is a snapshot; the unique indexes enforced at commit time are
    what actually prevents double booking.
    """

    def __init__(self, session: AsyncSession, store: Optional[InventoryStore] = None):
        self.session = session
        self.store = store or InventoryStore(session)

    async def check_seats(self, show_id: int, seats: Sequence[SeatKey]) -> SeatAvailability:
        """
        Check whether every requested seat is free for the show.

        Args:
            show_id: Show to check against
            seats: Requested (row, col) coordinates in request order

        Returns:
            SeatAvailability naming the first conflicting seat, if any
        """
        booked = await self.store.booked_seats(show_id)

        for seat in seats:
            if tuple(seat) in booked:
                logger.debug(f"Seat {seat} already booked for show {show_id}")
                return SeatAvailability(available=False, conflicting_seat=tuple(seat))

        return SeatAvailability(available=True)

    async def check_parking_spot(
        self,
        theatre_id: int,
        spot: Tuple[int, int, int],
    ) -> ParkingAvailability:
        """Check whether a (floor, row, col) spot is free at the theatre."""
        reserved = await self.store.reserved_spots(theatre_id)
        return ParkingAvailability(available=tuple(spot) not in reserved)
