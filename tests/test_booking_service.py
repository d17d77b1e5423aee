"""
Tests for the reservation engine (BookingService.create_booking).
"""

import asyncio
import uuid
from decimal import Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from helpers import add_user, count_rows, get_points
from showtime_booking.models import ParkingReservation, SeatBooking, Show
from showtime_booking.schemas.booking import ParkingSpotSelection, SeatSelection
from showtime_booking.services.availability_service import ParkingAvailability
from showtime_booking.services.booking_service import BookingService, calculate_total, normalize_points
from showtime_booking.utils.exceptions import (
    BookingPartiallyCommittedError,
    ErrorCode,
    InsufficientPointsError,
    SeatAlreadyBookedError,
    ShowNotFoundError,
    UserNotFoundError,
    ValidationError,
)


def seats(*coords):
    return [SeatSelection(row_number=row, col_number=col) for row, col in coords]


def spot(parking_id, floor=1, row=0, col=0):
    return ParkingSpotSelection(parking_id=parking_id, floor_number=floor, row_number=row, col_number=col)


async def book(session_factory, user_id, show_id, requested, parking_spot=None, points=None):
    """Run one booking request on its own session, as a request handler would."""
    async with session_factory() as db_session:
        return await BookingService(db_session).create_booking(
            user_id=user_id,
            show_id=show_id,
            seats=requested,
            parking_spot=parking_spot,
            points_to_redeem=points,
        )


async def available_seats(session_factory, show_id) -> int:
    async with session_factory() as db_session:
        return await db_session.scalar(select(Show.available_seats).where(Show.id == show_id))


class TestNormalizePoints:

    @pytest.mark.parametrize(
        "raw,expected",
        [(None, 0), (0, 0), (99.9, 99), (300, 300), (-5, 0), (-0.5, 0)],
    )
    def test_floors_and_clamps(self, raw, expected):
        assert normalize_points(raw) == expected

    def test_rejects_non_finite(self):
        with pytest.raises(ValidationError):
            normalize_points(float("inf"))


def test_calculate_total_adds_flat_parking_fee():
    assert calculate_total(Decimal("200"), 2, Decimal("20")) == Decimal("420")
    assert calculate_total(Decimal("150.50"), 3, Decimal("0")) == Decimal("451.50")


class TestScenarios:
    """End-to-end booking outcomes against a 200-per-seat show"""

    async def test_plain_booking_awards_one_point_per_unit_paid(self, session_factory, inventory):
        user_id = await add_user(session_factory, points=0)

        receipt = await book(session_factory, user_id, inventory.show_id, seats((0, 0), (0, 1)))

        assert receipt.total_amount == 400
        assert receipt.final_amount == 400
        assert receipt.points_used == 0
        assert receipt.points_awarded == 400
        assert receipt.points_balance == 400
        assert receipt.seats_booked == 2
        assert receipt.parking_reserved is False
        assert [(b.row_number, b.col_number) for b in receipt.bookings] == [(0, 0), (0, 1)]
        assert all(b.user_id == user_id and b.show_id == inventory.show_id for b in receipt.bookings)
        assert await get_points(session_factory, user_id) == 400

    async def test_redemption_reduces_bill_and_award(self, session_factory, inventory):
        user_id = await add_user(session_factory, points=500)

        receipt = await book(session_factory, user_id, inventory.show_id, seats((1, 0), (1, 1)), points=300)

        assert receipt.final_amount == 100
        assert receipt.points_used == 300
        assert receipt.points_awarded == 100
        assert receipt.points_balance == 300
        assert await get_points(session_factory, user_id) == 300

    async def test_insufficient_points_leaves_no_trace(self, session_factory, inventory):
        user_id = await add_user(session_factory, points=50)

        with pytest.raises(InsufficientPointsError) as exc_info:
            await book(session_factory, user_id, inventory.show_id, seats((2, 0), (2, 1)), points=300)

        assert exc_info.value.error_code == ErrorCode.INSUFFICIENT_POINTS
        assert await count_rows(session_factory, SeatBooking) == 0
        assert await get_points(session_factory, user_id) == 50
        assert await available_seats(session_factory, inventory.show_id) == 25

    async def test_concurrent_requests_for_same_seat(self, session_factory, inventory):
        # Given: two users racing for (0, 0)
        first_user = await add_user(session_factory)
        second_user = await add_user(session_factory)

        # When
        results = await asyncio.gather(
            book(session_factory, first_user, inventory.show_id, seats((0, 0), (0, 1))),
            book(session_factory, second_user, inventory.show_id, seats((0, 0), (0, 2))),
            return_exceptions=True,
        )

        # Then: exactly one wins and the loser is told (0, 0) is taken
        failures = [r for r in results if isinstance(r, Exception)]
        successes = [r for r in results if not isinstance(r, Exception)]
        assert len(successes) == 1
        assert len(failures) == 1
        assert isinstance(failures[0], SeatAlreadyBookedError)
        assert (failures[0].row_number, failures[0].col_number) == (0, 0)

        async with session_factory() as db_session:
            rows = (await db_session.execute(
                select(SeatBooking.row_number, SeatBooking.col_number)
                .where(SeatBooking.show_id == inventory.show_id)
            )).all()
        coords = [tuple(row) for row in rows]
        assert coords.count((0, 0)) == 1
        assert len(coords) == 2

    async def test_taken_parking_spot_keeps_seats(self, session_factory, inventory):
        # Given: another user already holds spot (1, 0, 0)
        holder = await add_user(session_factory)
        await book(session_factory, holder, inventory.second_show_id, seats((4, 4)),
                   parking_spot=spot(inventory.parking_id))
        user_id = await add_user(session_factory)

        # When
        receipt = await book(session_factory, user_id, inventory.show_id, seats((3, 0), (3, 1)),
                             parking_spot=spot(inventory.parking_id))

        # Then: seats are sold, parking is reported as failed and not charged
        assert receipt.seats_booked == 2
        assert receipt.parking_reserved is False
        assert receipt.parking_reservation_id is None
        assert "already reserved" in receipt.parking_error
        assert receipt.total_amount == 400
        assert receipt.points_balance == 400
        assert await count_rows(session_factory, ParkingReservation) == 1


class TestParking:

    async def test_parking_adds_flat_fee_and_reserves_spot(self, session_factory, inventory):
        user_id = await add_user(session_factory)

        receipt = await book(session_factory, user_id, inventory.show_id, seats((0, 0), (0, 1)),
                             parking_spot=spot(inventory.parking_id, row=2, col=1))

        assert receipt.parking_reserved is True
        assert receipt.parking_reservation_id is not None
        assert receipt.parking_error is None
        assert receipt.total_amount == 420
        assert receipt.points_awarded == 420

        async with session_factory() as db_session:
            reservation = await db_session.get(ParkingReservation, receipt.parking_reservation_id)
        assert (reservation.floor_number, reservation.row_number, reservation.col_number) == (1, 2, 1)
        assert reservation.theatre_id == inventory.theatre_id
        assert reservation.user_id == user_id

    async def test_concurrent_requests_for_same_spot(self, session_factory, inventory):
        first_user = await add_user(session_factory)
        second_user = await add_user(session_factory)

        receipts = await asyncio.gather(
            book(session_factory, first_user, inventory.show_id, seats((0, 0)),
                 parking_spot=spot(inventory.parking_id, row=1, col=1)),
            book(session_factory, second_user, inventory.show_id, seats((0, 1)),
                 parking_spot=spot(inventory.parking_id, row=1, col=1)),
        )

        assert sorted(r.parking_reserved for r in receipts) == [False, True]
        assert all(r.seats_booked == 1 for r in receipts)
        assert await count_rows(session_factory, ParkingReservation) == 1

    async def test_parking_of_another_theatre_is_rejected(self, session_factory, inventory):
        user_id = await add_user(session_factory)

        with pytest.raises(ValidationError):
            await book(session_factory, user_id, inventory.show_id, seats((0, 0)),
                       parking_spot=spot(inventory.other_parking_id))

        assert await count_rows(session_factory, SeatBooking) == 0

    async def test_floor_must_match_parking(self, session_factory, inventory):
        user_id = await add_user(session_factory)

        with pytest.raises(ValidationError):
            await book(session_factory, user_id, inventory.show_id, seats((0, 0)),
                       parking_spot=spot(inventory.parking_id, floor=2))

    async def test_spot_outside_parking_grid_is_rejected(self, session_factory, inventory):
        user_id = await add_user(session_factory)

        with pytest.raises(ValidationError):
            await book(session_factory, user_id, inventory.show_id, seats((0, 0)),
                       parking_spot=spot(inventory.parking_id, row=3, col=0))

        assert await count_rows(session_factory, SeatBooking) == 0

    async def test_spot_claimed_between_check_and_insert_is_not_charged(
        self, session_factory, inventory, monkeypatch
    ):
        # Given: spot (1, 0, 0) is held, but this request's checks still see it free
        holder = await add_user(session_factory)
        await book(session_factory, holder, inventory.second_show_id, seats((4, 4)),
                   parking_spot=spot(inventory.parking_id))
        user_id = await add_user(session_factory)

        async with session_factory() as db_session:
            service = BookingService(db_session)

            async def stale_check(theatre_id, spot_key):
                return ParkingAvailability(available=True)

            monkeypatch.setattr(service.availability, "check_parking_spot", stale_check)

            # When
            receipt = await service.create_booking(
                user_id, inventory.show_id, seats((3, 0), (3, 1)), parking_spot=spot(inventory.parking_id)
            )

        # Then: the unique index rejects the insert and the fee is left out of the bill
        assert receipt.parking_reserved is False
        assert receipt.parking_reservation_id is None
        assert "already reserved" in receipt.parking_error
        assert receipt.total_amount == 400
        assert receipt.final_amount == 400
        assert receipt.points_awarded == 400
        assert receipt.points_balance == 400
        assert await get_points(session_factory, user_id) == 400
        assert await count_rows(session_factory, ParkingReservation) == 1

    async def test_redemption_that_only_fit_with_parking_is_reported_as_partial(
        self, session_factory, inventory, monkeypatch
    ):
        # Given: the spot is free at the pre-check and gone by the time seats are sold
        user_id = await add_user(session_factory, points=500)
        answers = iter([True, False])

        async with session_factory() as db_session:
            service = BookingService(db_session)

            async def racing_check(theatre_id, spot_key):
                return ParkingAvailability(available=next(answers))

            monkeypatch.setattr(service.availability, "check_parking_spot", racing_check)

            # When: 420 points fit 2 x 200 + parking but not the seats alone
            with pytest.raises(BookingPartiallyCommittedError) as exc_info:
                await service.create_booking(
                    user_id, inventory.show_id, seats((2, 0), (2, 1)),
                    parking_spot=spot(inventory.parking_id), points_to_redeem=420,
                )

        # Then: seats stay sold, the balance is untouched and the failure is not a 422
        error = exc_info.value
        assert error.error_code == ErrorCode.BOOKING_PARTIALLY_COMMITTED
        assert error.stage == "points"
        assert len(error.booking_ids) == 2
        assert "already reserved" in error.details["parking_error"]
        assert await count_rows(session_factory, SeatBooking) == 2
        assert await count_rows(session_factory, ParkingReservation) == 0
        assert await get_points(session_factory, user_id) == 500


class TestValidation:
    """Malformed requests are rejected before any write"""

    async def test_empty_seat_list(self, session_factory, inventory):
        user_id = await add_user(session_factory)

        with pytest.raises(ValidationError):
            await book(session_factory, user_id, inventory.show_id, [])

    async def test_duplicate_seat_in_request(self, session_factory, inventory):
        user_id = await add_user(session_factory)

        with pytest.raises(ValidationError):
            await book(session_factory, user_id, inventory.show_id, seats((0, 0), (0, 0)))

        assert await count_rows(session_factory, SeatBooking) == 0

    async def test_too_many_seats(self, session_factory, inventory):
        user_id = await add_user(session_factory)
        requested = seats(*[(row, col) for row in range(3) for col in range(4)])

        with pytest.raises(ValidationError):
            await book(session_factory, user_id, inventory.show_id, requested)

    @pytest.mark.parametrize("coord", [(5, 0), (0, 5), (-1, 0)])
    async def test_seat_outside_screen_grid(self, session_factory, inventory, coord):
        user_id = await add_user(session_factory)

        with pytest.raises(ValidationError):
            await book(session_factory, user_id, inventory.show_id, seats(coord))

        assert await count_rows(session_factory, SeatBooking) == 0

    async def test_unknown_show(self, session_factory, inventory):
        user_id = await add_user(session_factory)

        with pytest.raises(ShowNotFoundError):
            await book(session_factory, user_id, 9999, seats((0, 0)))

    async def test_redeeming_more_than_bill(self, session_factory, inventory):
        user_id = await add_user(session_factory, points=1000)

        with pytest.raises(ValidationError) as exc_info:
            await book(session_factory, user_id, inventory.show_id, seats((0, 0)), points=500)

        assert exc_info.value.error_code == ErrorCode.VALIDATION_ERROR
        assert await count_rows(session_factory, SeatBooking) == 0
        assert await get_points(session_factory, user_id) == 1000

    async def test_taken_parking_fee_not_counted_towards_redemption_bound(self, session_factory, inventory):
        # Given: the spot is already held, so the bill will not include the fee
        holder = await add_user(session_factory)
        await book(session_factory, holder, inventory.show_id, seats((4, 4)),
                   parking_spot=spot(inventory.parking_id))
        user_id = await add_user(session_factory, points=1000)

        # When: redeeming 210 on what is now a 200 bill
        with pytest.raises(ValidationError):
            await book(session_factory, user_id, inventory.show_id, seats((0, 0)),
                       parking_spot=spot(inventory.parking_id), points=210)

        # Then
        assert await count_rows(session_factory, SeatBooking) == 1
        assert await get_points(session_factory, user_id) == 1000

    async def test_existing_booking_conflict_names_seat(self, session_factory, inventory):
        holder = await add_user(session_factory)
        await book(session_factory, holder, inventory.show_id, seats((1, 1)))
        user_id = await add_user(session_factory, points=100)

        with pytest.raises(SeatAlreadyBookedError) as exc_info:
            await book(session_factory, user_id, inventory.show_id, seats((0, 0), (1, 1)), points=50)

        assert exc_info.value.message == "Seat Row 1, Col 1 is already booked"
        assert await count_rows(session_factory, SeatBooking) == 1
        assert await get_points(session_factory, user_id) == 100


class TestPointsArithmetic:

    async def test_fractional_redemption_is_floored(self, session_factory, inventory):
        user_id = await add_user(session_factory, points=100)

        receipt = await book(session_factory, user_id, inventory.show_id, seats((0, 0)), points=99.9)

        assert receipt.points_used == 99
        assert receipt.final_amount == 101
        assert receipt.points_balance == 100 - 99 + 101

    async def test_negative_redemption_counts_as_zero(self, session_factory, inventory):
        user_id = await add_user(session_factory, points=10)

        receipt = await book(session_factory, user_id, inventory.show_id, seats((0, 0)), points=-40)

        assert receipt.points_used == 0
        assert receipt.points_balance == 210

    async def test_full_redemption_awards_nothing(self, session_factory, inventory):
        user_id = await add_user(session_factory, points=400)

        receipt = await book(session_factory, user_id, inventory.show_id, seats((0, 0), (0, 1)), points=400)

        assert receipt.final_amount == 0
        assert receipt.points_awarded == 0
        assert receipt.points_balance == 0

    async def test_fractional_price_awards_whole_units(self, session_factory, inventory):
        user_id = await add_user(session_factory)

        receipt = await book(session_factory, user_id, inventory.second_show_id, seats((0, 0), (0, 1), (0, 2)))

        assert receipt.total_amount == pytest.approx(451.5)
        assert receipt.final_amount == pytest.approx(451.5)
        assert receipt.points_awarded == 451

    async def test_concurrent_bookings_by_one_user_keep_both_awards(self, session_factory, inventory):
        user_id = await add_user(session_factory, points=0)

        await asyncio.gather(
            book(session_factory, user_id, inventory.show_id, seats((0, 0))),
            book(session_factory, user_id, inventory.show_id, seats((0, 1))),
        )

        assert await get_points(session_factory, user_id) == 400


class TestSideEffects:

    async def test_available_seats_counter_is_decremented(self, session_factory, inventory):
        user_id = await add_user(session_factory)

        await book(session_factory, user_id, inventory.show_id, seats((0, 0), (0, 1)))

        assert await available_seats(session_factory, inventory.show_id) == 23

    async def test_counter_failure_does_not_fail_booking(self, session_factory, inventory, monkeypatch):
        user_id = await add_user(session_factory)

        async with session_factory() as db_session:
            service = BookingService(db_session)

            async def broken_decrement(show_id, count):
                raise OperationalError("UPDATE shows", {}, Exception("database is locked"))

            monkeypatch.setattr(service.store, "decrement_available_seats", broken_decrement)
            receipt = await service.create_booking(user_id, inventory.show_id, seats((0, 0)))

        assert receipt.seats_booked == 1
        assert await available_seats(session_factory, inventory.show_id) == 25

    async def test_points_failure_after_seat_commit_is_reported(self, session_factory, inventory, monkeypatch):
        # Given: the ledger write fails after the seats are committed
        user_id = await add_user(session_factory, points=100)

        async with session_factory() as db_session:
            service = BookingService(db_session)

            async def broken_apply_delta(uid, redeem, award):
                raise OperationalError("UPDATE users", {}, Exception("connection lost"))

            monkeypatch.setattr(service.ledger, "apply_delta", broken_apply_delta)

            # When
            with pytest.raises(BookingPartiallyCommittedError) as exc_info:
                await service.create_booking(user_id, inventory.show_id, seats((2, 2), (2, 3)))

        # Then: the seats stay booked and their ids are surfaced
        assert exc_info.value.stage == "points"
        assert len(exc_info.value.booking_ids) == 2
        assert await count_rows(session_factory, SeatBooking) == 2
        assert await get_points(session_factory, user_id) == 100

    async def test_unknown_user_is_rejected_before_seats(self, session_factory, inventory):
        with pytest.raises(UserNotFoundError):
            await book(session_factory, uuid.uuid4(), inventory.show_id, seats((0, 0)))

        assert await count_rows(session_factory, SeatBooking) == 0

    async def test_points_failure_after_parking_claim_lists_reservation(
        self, session_factory, inventory, monkeypatch
    ):
        user_id = await add_user(session_factory)

        async with session_factory() as db_session:
            service = BookingService(db_session)

            async def broken_apply_delta(uid, redeem, award):
                raise OperationalError("UPDATE users", {}, Exception("connection lost"))

            monkeypatch.setattr(service.ledger, "apply_delta", broken_apply_delta)

            with pytest.raises(BookingPartiallyCommittedError) as exc_info:
                await service.create_booking(
                    user_id, inventory.show_id, seats((1, 1)), parking_spot=spot(inventory.parking_id, row=2)
                )

        assert exc_info.value.stage == "points"
        assert exc_info.value.details["parking_reservation_id"] is not None
        assert await count_rows(session_factory, ParkingReservation) == 1
