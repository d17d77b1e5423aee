"""
Pydantic schemas for booking-related API requests and responses.
"""

from datetime import date, datetime, time
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class SeatSelection(BaseModel):
    """A requested seat coordinate, 0-based within the screen grid."""

    row_number: int = Field(..., description="0-based row index")
    col_number: int = Field(..., description="0-based column index")

    def as_tuple(self) -> tuple[int, int]:
        return (self.row_number, self.col_number)


class ParkingSpotSelection(BaseModel):
    """A requested parking spot; all four fields are required together."""

    parking_id: int = Field(..., description="ID of the parking floor record")
    floor_number: int = Field(..., description="Floor of the parking structure")
    row_number: int = Field(..., description="0-based row index on the floor")
    col_number: int = Field(..., description="0-based column index on the floor")


class BookingCreateRequest(BaseModel):
    """Schema for creating a new booking."""

    show_id: int = Field(..., description="ID of the show to book")
    seats: List[SeatSelection] = Field(..., description="Seats to book, in selection order")
    points_used: Optional[float] = Field(
        None,
        description="Loyalty points to redeem; fractions are floored and negatives count as zero"
    )
    parking_reservation: Optional[ParkingSpotSelection] = Field(
        None,
        description="Optional parking spot at the show's theatre"
    )


class SeatBookingResponse(BaseModel):
    """Schema for a committed seat booking row."""

    id: int
    show_id: int
    theatre_id: int
    screen_id: int
    user_id: UUID
    row_number: int
    col_number: int
    is_booked: bool
    booked_at: datetime

    model_config = {"from_attributes": True}


class BookingReceipt(BaseModel):
    """Aggregated outcome of one booking request."""

    bookings: List[SeatBookingResponse]
    total_amount: float
    final_amount: float
    points_used: int
    points_awarded: int
    points_balance: int
    seats_booked: int
    parking_reserved: bool = False
    parking_reservation_id: Optional[int] = None
    parking_error: Optional[str] = None


class BookedSeat(BaseModel):
    """A seat coordinate on a user's booking summary."""

    id: int
    row_number: int
    col_number: int


class UserShowBookings(BaseModel):
    """A user's seats for one show, grouped for display."""

    show_id: int
    movie_name: str
    language: str
    show_date: date
    start_time: time
    end_time: time
    ticket_price: float
    theatre_name: str
    city: str
    state: str
    screen_number: int
    booked_at: datetime
    seats: List[BookedSeat] = []
    total_amount: float = 0.0


class UserBookingsResponse(BaseModel):
    """Schema for the caller's booking history."""

    bookings: List[UserShowBookings]
