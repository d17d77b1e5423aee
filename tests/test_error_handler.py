"""
Tests for error-to-status mapping in the error handler middleware.
"""

import importlib
import warnings

import pytest

from showtime_booking.middleware import error_handler
from showtime_booking.utils.exceptions import (
    BookingPartiallyCommittedError,
    InsufficientPointsError,
    SeatAlreadyBookedError,
    ValidationError,
)


class TestStatusCodeFor:

    @pytest.mark.parametrize(
        "exc, expected",
        [
            (ValidationError("Missing required fields"), 422),
            (InsufficientPointsError("Insufficient points", requested=300, limit=50), 422),
            (SeatAlreadyBookedError(1, 0, 0), 409),
            (BookingPartiallyCommittedError("Seats booked", booking_ids=[1], stage="points"), 500),
        ],
    )
    def test_maps_error_codes(self, exc, expected):
        assert error_handler.status_code_for(exc) == expected

    def test_module_loads_without_warnings(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            importlib.reload(error_handler)

        assert error_handler.STATUS_MAP[error_handler.ErrorCode.VALIDATION_ERROR] == 422
