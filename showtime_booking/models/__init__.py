"""
Database models for the Showtime Booking service.
"""

from .base import Base
from .user import User
from .theatre import Theatre, Screen
from .show import Show
from .seat_booking import SeatBooking
from .parking import Parking, ParkingReservation

__all__ = [
    "Base",
    "User",
    "Theatre",
    "Screen",
    "Show",
    "SeatBooking",
    "Parking",
    "ParkingReservation",
]
