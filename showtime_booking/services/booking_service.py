"""
Booking service: seat and parking reservation with loyalty points.
"""

import logging
import math
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..cache import CacheInvalidator
from ..config import get_settings
from ..models import Parking, Show
from ..schemas.booking import (
    BookingReceipt,
    ParkingSpotSelection,
    SeatBookingResponse,
    SeatSelection,
)
from ..utils.exceptions import (
    BookingPartiallyCommittedError,
    BookingPlatformError,
    ConcurrencyError,
    InsufficientPointsError,
    ParkingSpotTakenError,
    SeatAlreadyBookedError,
    ShowNotFoundError,
    ValidationError,
)
from ..utils.logging_config import log_business_event
from .availability_service import AvailabilityChecker
from .inventory_service import InventoryStore, SeatKey, SpotKey
from .points_service import PointsLedger

logger = logging.getLogger(__name__)


def normalize_points(points_to_redeem: Optional[float]) -> int:
    """Floor fractional input and treat negative input as zero."""
    if points_to_redeem is None:
        return 0
    if not math.isfinite(points_to_redeem):
        raise ValidationError(
            "Invalid points amount",
            field_errors={"points_used": ["Must be a finite number"]}
        )
    return max(0, math.floor(points_to_redeem))


def calculate_total(price_per_seat: Decimal, seat_count: int, parking_fee: Decimal) -> Decimal:
    """Seat price times seat count plus the flat parking fee, if any."""
    return price_per_seat * seat_count + parking_fee


class BookingService:
    """Reservation engine for one booking request.

    Steps run in a fixed order and each commit is permanent. Everything that
    can reject the request without side effects runs before the seat commit;
    once seats are committed, later failures leave them booked and are
    surfaced with the committed booking ids instead of being rolled back.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.settings = get_settings()
        self.store = InventoryStore(session)
        self.availability = AvailabilityChecker(session, self.store)
        self.ledger = PointsLedger(session)

    async def create_booking(
        self,
        user_id: UUID,
        show_id: int,
        seats: Sequence[SeatSelection],
        parking_spot: Optional[ParkingSpotSelection] = None,
        points_to_redeem: Optional[float] = None,
    ) -> BookingReceipt:
        """
        Reserve seats (and optionally a parking spot) for a show.

        Args:
            user_id: Authenticated user making the booking
            show_id: Show to book
            seats: Requested seats in selection order
            parking_spot: Optional parking spot at the show's theatre
            points_to_redeem: Loyalty points to redeem against the bill

        Returns:
            Receipt with committed bookings, amounts and points

        Raises:
            ValidationError: Malformed, out-of-bounds or over-limit input
            ShowNotFoundError: Unknown show
            SeatAlreadyBookedError: A requested seat is taken
            InsufficientPointsError: Redemption exceeds the balance
            BookingPartiallyCommittedError: A step after the seat commit failed
        """
        logger.info(
            f"Creating booking for user {user_id}, show {show_id}, "
            f"{len(seats) if seats else 0} seats, parking={'yes' if parking_spot else 'no'}"
        )

        seat_keys = self._validate_seats(seats)
        points_used = normalize_points(points_to_redeem)

        show = await self.store.get_show(show_id)
        if show is None:
            raise ShowNotFoundError(show_id)

        # Commits and rollbacks expire ORM state; keep plain values from here on
        theatre_id = show.theatre_id
        screen_id = show.screen_id
        price = Decimal(str(show.ticket_price))
        self._validate_seat_bounds(show, seat_keys)

        spot_key: Optional[SpotKey] = None
        if parking_spot is not None:
            await self._validate_parking_spot(show, parking_spot)
            spot_key = (parking_spot.floor_number, parking_spot.row_number, parking_spot.col_number)

        availability = await self.availability.check_seats(show_id, seat_keys)
        if not availability.available:
            row, col = availability.conflicting_seat
            raise SeatAlreadyBookedError(show_id, row, col)

        parking_expected = False
        if spot_key is not None:
            parking_expected = (
                await self.availability.check_parking_spot(theatre_id, spot_key)
            ).available

        projected_total = calculate_total(price, len(seat_keys), self._parking_fee(parking_expected))
        await self._validate_redemption(user_id, points_used, projected_total)

        # Seats are sold from here on
        booking_rows = await self._commit_seats(show_id, theatre_id, screen_id, user_id, seat_keys)
        booking_ids = [row.id for row in booking_rows]

        await self._decrement_available_seats(show_id, len(booking_rows))
        await CacheInvalidator.invalidate_seat_caches(show_id)

        parking_reservation_id: Optional[int] = None
        parking_error: Optional[str] = None
        if spot_key is not None:
            parking_reservation_id, parking_error = await self._claim_parking(
                theatre_id, parking_spot.parking_id, show_id, user_id, spot_key, booking_ids
            )
        parking_available = parking_reservation_id is not None

        total_amount = calculate_total(price, len(booking_rows), self._parking_fee(parking_available))
        if points_used > total_amount:
            logger.error(
                f"Redemption of {points_used} points no longer fits bookings {booking_ids} "
                f"after the parking spot was lost (total {total_amount})"
            )
            error = BookingPartiallyCommittedError(
                f"Seats booked, but {points_used} points exceed the total amount ({total_amount}) "
                f"without parking; no points were redeemed",
                booking_ids=booking_ids,
                stage="points",
            )
            error.details["parking_error"] = parking_error
            raise error

        final_amount = max(Decimal("0"), total_amount - points_used)
        points_awarded = math.floor(final_amount)

        new_balance = await self._apply_points(
            user_id, points_used, points_awarded, booking_ids, parking_reservation_id
        )

        log_business_event(
            "booking_created",
            {
                "show_id": show_id,
                "booking_ids": booking_ids,
                "total_amount": str(total_amount),
                "points_used": points_used,
                "points_awarded": points_awarded,
                "parking_reserved": parking_available,
            },
            user_id=str(user_id),
        )

        return BookingReceipt(
            bookings=booking_rows,
            total_amount=float(total_amount),
            final_amount=float(final_amount),
            points_used=points_used,
            points_awarded=points_awarded,
            points_balance=new_balance,
            seats_booked=len(booking_rows),
            parking_reserved=parking_available,
            parking_reservation_id=parking_reservation_id,
            parking_error=parking_error,
        )

    def _parking_fee(self, parking_included: bool) -> Decimal:
        return Decimal(self.settings.parking_fee) if parking_included else Decimal("0")

    def _validate_seats(self, seats: Sequence[SeatSelection]) -> List[SeatKey]:
        if not seats:
            raise ValidationError(
                "Missing required fields",
                field_errors={"seats": ["At least one seat is required"]}
            )

        if len(seats) > self.settings.max_seats_per_booking:
            raise ValidationError(
                f"Cannot book more than {self.settings.max_seats_per_booking} seats at once",
                field_errors={"seats": ["Too many seats requested"]}
            )

        seat_keys: List[SeatKey] = []
        for seat in seats:
            key = seat.as_tuple()
            if key in seat_keys:
                raise ValidationError(
                    f"Seat Row {key[0]}, Col {key[1]} is selected more than once",
                    field_errors={"seats": ["Duplicate seat"]}
                )
            seat_keys.append(key)
        return seat_keys

    def _validate_seat_bounds(self, show: Show, seat_keys: List[SeatKey]) -> None:
        screen = show.screen
        for row, col in seat_keys:
            if not screen.contains(row, col):
                raise ValidationError(
                    f"Seat Row {row}, Col {col} is outside the "
                    f"{screen.total_rows}x{screen.total_columns} seat grid",
                    field_errors={"seats": ["Seat out of bounds"]}
                )

    async def _validate_parking_spot(self, show: Show, spot: ParkingSpotSelection) -> Parking:
        parking = await self.store.get_parking(spot.parking_id)
        if parking is None or parking.theatre_id != show.theatre_id:
            raise ValidationError(
                f"Parking {spot.parking_id} does not belong to this theatre",
                field_errors={"parking_reservation.parking_id": ["Unknown parking for theatre"]}
            )
        if parking.floor_number != spot.floor_number:
            raise ValidationError(
                f"Parking {spot.parking_id} is on floor {parking.floor_number}, not {spot.floor_number}",
                field_errors={"parking_reservation.floor_number": ["Floor does not match parking"]}
            )
        if not parking.contains(spot.row_number, spot.col_number):
            raise ValidationError(
                f"Parking spot Row {spot.row_number}, Col {spot.col_number} is outside the "
                f"{parking.total_rows}x{parking.total_columns} parking grid",
                field_errors={"parking_reservation": ["Parking spot out of bounds"]}
            )
        return parking

    async def _validate_redemption(self, user_id: UUID, points_used: int, total_amount: Decimal) -> int:
        balance = await self.ledger.get_balance(user_id)

        if points_used > 0:
            if points_used > balance:
                raise InsufficientPointsError(
                    f"Insufficient points. You have {balance} points, but trying to use {points_used}",
                    requested=points_used,
                    limit=balance,
                )
            if points_used > total_amount:
                raise ValidationError(
                    f"Cannot use more points than the total amount ({total_amount})",
                    field_errors={"points_used": ["Exceeds the total amount"]}
                )

        return balance

    async def _commit_seats(
        self,
        show_id: int,
        theatre_id: int,
        screen_id: int,
        user_id: UUID,
        seat_keys: List[SeatKey],
    ) -> List[SeatBookingResponse]:
        try:
            rows = await self.store.insert_seat_bookings(show_id, theatre_id, screen_id, user_id, seat_keys)
        except IntegrityError as e:
            logger.warning(f"Seat insert for show {show_id} lost a race: {e.orig}")
            recheck = await self.availability.check_seats(show_id, seat_keys)
            if not recheck.available:
                row, col = recheck.conflicting_seat
                raise SeatAlreadyBookedError(show_id, row, col) from e
            raise ConcurrencyError("Seats were modified by another booking. Please try again.") from e

        return [SeatBookingResponse.model_validate(row) for row in rows]

    async def _decrement_available_seats(self, show_id: int, count: int) -> None:
        try:
            await self.store.decrement_available_seats(show_id, count)
        except SQLAlchemyError as e:
            logger.warning(f"Error updating available seats for show {show_id}: {e}")

    async def _claim_parking(
        self,
        theatre_id: int,
        parking_id: int,
        show_id: int,
        user_id: UUID,
        spot_key: SpotKey,
        booking_ids: List[int],
    ) -> Tuple[Optional[int], Optional[str]]:
        """Reserve the spot before pricing; returns (reservation id, error message)."""
        check = await self.availability.check_parking_spot(theatre_id, spot_key)
        if not check.available:
            logger.warning(f"Parking spot {spot_key} at theatre {theatre_id} taken, booking seats only")
            return None, ParkingSpotTakenError(theatre_id, *spot_key).message

        try:
            reservation = await self.store.insert_parking_reservation(
                theatre_id, parking_id, show_id, user_id, spot_key
            )
        except IntegrityError:
            logger.warning(f"Parking spot {spot_key} at theatre {theatre_id} claimed concurrently")
            return None, ParkingSpotTakenError(theatre_id, *spot_key).message
        except SQLAlchemyError as e:
            logger.error(f"Failed to reserve parking for bookings {booking_ids}: {e}")
            raise BookingPartiallyCommittedError(
                "Seats booked, but the parking reservation failed",
                booking_ids=booking_ids,
                stage="parking",
            ) from e

        await CacheInvalidator.invalidate_parking_caches(theatre_id)
        return reservation.id, None

    async def _apply_points(
        self,
        user_id: UUID,
        points_used: int,
        points_awarded: int,
        booking_ids: List[int],
        parking_reservation_id: Optional[int] = None,
    ) -> int:
        try:
            return await self.ledger.apply_delta(user_id, points_used, points_awarded)
        except BookingPlatformError as e:
            e.details["booking_ids"] = booking_ids
            if parking_reservation_id is not None:
                e.details["parking_reservation_id"] = parking_reservation_id
            raise
        except SQLAlchemyError as e:
            logger.error(f"Failed to update points for user {user_id}: {e}")
            error = BookingPartiallyCommittedError(
                f"Seats booked, but failed to update points: {e}",
                booking_ids=booking_ids,
                stage="points",
            )
            if parking_reservation_id is not None:
                error.details["parking_reservation_id"] = parking_reservation_id
            raise error from e
