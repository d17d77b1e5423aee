"""
User model holding the loyalty points balance.
"""

import uuid
from typing import List, TYPE_CHECKING

from sqlalchemy import CheckConstraint, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .seat_booking import SeatBooking


class User(Base):
    """User record mirrored from the external identity provider."""

    __tablename__ = "users"

    # Identity is issued by the auth provider, not generated here
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True
    )

    # Redeemable loyalty points, 1 point per currency unit paid
    points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    bookings: Mapped[List["SeatBooking"]] = relationship(
        "SeatBooking",
        back_populates="user"
    )

    __table_args__ = (
        CheckConstraint("points >= 0", name="ck_users_points_non_negative"),
    )

    def __repr__(self) -> str:
        """String representation of the user."""
        return f"<User(id={self.id}, email='{self.email}', points={self.points})>"
