"""Business logic services for the Showtime booking service."""

from .availability_service import AvailabilityChecker
from .booking_service import BookingService
from .inventory_service import InventoryStore
from .points_service import PointsLedger
from .show_service import ShowService
from .user_service import UserService

__all__ = [
    "AvailabilityChecker",
    "BookingService",
    "InventoryStore",
    "PointsLedger",
    "ShowService",
    "UserService",
]
