"""
Custom exceptions for the Showtime Booking service.
"""

from typing import Any, Dict, Optional, List
from enum import Enum


class ErrorCode(str, Enum):
    """Standard error codes for the platform."""

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"

    # Business logic errors
    SEAT_ALREADY_BOOKED = "SEAT_ALREADY_BOOKED"
    PARKING_SPOT_TAKEN = "PARKING_SPOT_TAKEN"
    INSUFFICIENT_POINTS = "INSUFFICIENT_POINTS"
    BOOKING_PARTIALLY_COMMITTED = "BOOKING_PARTIALLY_COMMITTED"

    # Concurrency errors
    CONCURRENCY_CONFLICT = "CONCURRENCY_CONFLICT"
    OPTIMISTIC_LOCK_FAILURE = "OPTIMISTIC_LOCK_FAILURE"

    # External service errors
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"


class BookingPlatformError(Exception):
    """Base exception class for the booking service."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
        retry_after: Optional[int] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.suggestions = suggestions or []
        self.retry_after = retry_after
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        result = {
            "error": self.message,
            "error_code": self.error_code.value,
        }

        if self.details:
            result["details"] = self.details

        if self.suggestions:
            result["suggestions"] = self.suggestions

        if self.retry_after:
            result["retry_after"] = self.retry_after

        return result


class ValidationError(BookingPlatformError):
    """Exception raised for malformed or out-of-range input."""

    def __init__(
        self,
        message: str,
        field_errors: Optional[Dict[str, List[str]]] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        **kwargs
    ):
        if field_errors and "details" not in kwargs:
            kwargs["details"] = {"field_errors": field_errors}
        super().__init__(message, error_code=error_code, **kwargs)
        self.field_errors = field_errors or {}


class InsufficientPointsError(ValidationError):
    """Exception raised when a redemption exceeds the balance or the bill."""

    def __init__(self, message: str, requested: int, limit: Any, **kwargs):
        super().__init__(
            message,
            error_code=ErrorCode.INSUFFICIENT_POINTS,
            details={"requested": requested, "limit": str(limit)},
            suggestions=["Redeem fewer points"],
            **kwargs
        )
        self.requested = requested
        self.limit = limit


class NotFoundError(BookingPlatformError):
    """Base exception for resource not found errors."""

    def __init__(self, message: str, resource_type: Optional[str] = None, resource_id: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            error_code=ErrorCode.NOT_FOUND,
            details={"resource_type": resource_type, "resource_id": resource_id} if resource_type else None,
            **kwargs
        )


class ShowNotFoundError(NotFoundError):
    """Exception raised when a show is not found."""

    def __init__(self, show_id: Any, **kwargs):
        super().__init__(
            "Show not found",
            resource_type="show",
            resource_id=str(show_id),
            suggestions=["Check the show ID", "Browse current shows"],
            **kwargs
        )


class TheatreNotFoundError(NotFoundError):
    """Exception raised when a theatre is not found."""

    def __init__(self, theatre_id: Any, **kwargs):
        super().__init__(
            "Theatre not found",
            resource_type="theatre",
            resource_id=str(theatre_id),
            **kwargs
        )


class UserNotFoundError(NotFoundError):
    """Exception raised when a user is not found."""

    def __init__(self, user_id: Any, **kwargs):
        super().__init__(
            f"User {user_id} not found",
            resource_type="user",
            resource_id=str(user_id),
            **kwargs
        )


class AuthenticationError(BookingPlatformError):
    """Exception raised for authentication failures."""

    def __init__(self, message: str = "Unauthorized", **kwargs):
        super().__init__(
            message,
            error_code=ErrorCode.UNAUTHORIZED,
            **kwargs
        )


class BusinessLogicError(BookingPlatformError):
    """Base exception for business rule violations."""
    pass


class SeatAlreadyBookedError(BusinessLogicError):
    """Exception raised when a requested seat is already taken for the show."""

    def __init__(self, show_id: int, row_number: int, col_number: int, **kwargs):
        super().__init__(
            f"Seat Row {row_number}, Col {col_number} is already booked",
            error_code=ErrorCode.SEAT_ALREADY_BOOKED,
            details={"show_id": show_id, "row_number": row_number, "col_number": col_number},
            suggestions=["Choose a different seat", "Refresh seat availability"],
            **kwargs
        )
        self.show_id = show_id
        self.row_number = row_number
        self.col_number = col_number


class ParkingSpotTakenError(BusinessLogicError):
    """Exception raised when a parking spot is already reserved at the theatre."""

    def __init__(self, theatre_id: int, floor_number: int, row_number: int, col_number: int, **kwargs):
        super().__init__(
            f"Parking spot Floor {floor_number}, Row {row_number}, Col {col_number} is already reserved",
            error_code=ErrorCode.PARKING_SPOT_TAKEN,
            details={
                "theatre_id": theatre_id,
                "floor_number": floor_number,
                "row_number": row_number,
                "col_number": col_number,
            },
            suggestions=["Choose a different parking spot"],
            **kwargs
        )


class BookingPartiallyCommittedError(BookingPlatformError):
    """Exception raised when a step after the seat commit fails.

    Seats committed before the failure stay booked; their ids are listed in
    ``details`` so the caller can show the user what was kept.
    """

    def __init__(self, message: str, booking_ids: List[int], stage: str, **kwargs):
        super().__init__(
            message,
            error_code=ErrorCode.BOOKING_PARTIALLY_COMMITTED,
            details={"booking_ids": booking_ids, "failed_stage": stage},
            suggestions=["Your seats are booked", "Contact support about the failed step"],
            **kwargs
        )
        self.booking_ids = booking_ids
        self.stage = stage


class ConcurrencyError(BookingPlatformError):
    """Exception raised for concurrency-related issues."""

    def __init__(self, message: str, retry_after: int = 1, error_code: ErrorCode = ErrorCode.CONCURRENCY_CONFLICT, **kwargs):
        super().__init__(
            message,
            error_code=error_code,
            retry_after=retry_after,
            suggestions=["Please try again"],
            **kwargs
        )


class OptimisticLockError(ConcurrencyError):
    """Exception raised when a compare-and-swap update loses a race."""

    def __init__(self, resource_type: str, resource_id: str, **kwargs):
        super().__init__(
            f"{resource_type} {resource_id} was modified by another transaction",
            details={"resource_type": resource_type, "resource_id": resource_id},
            error_code=ErrorCode.OPTIMISTIC_LOCK_FAILURE,
            **kwargs
        )


class ExternalServiceError(BookingPlatformError):
    """Exception raised for infrastructure failures."""

    def __init__(self, service_name: str, message: str, **kwargs):
        super().__init__(
            f"{service_name} service error: {message}",
            error_code=ErrorCode.EXTERNAL_SERVICE_ERROR,
            suggestions=["Try again later"],
            **kwargs
        )
