"""
SeatBooking model: one committed seat of one show.
"""

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .show import Show
    from .user import User


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SeatBooking(Base):
    """A seat coordinate reserved by one user for one show."""

    __tablename__ = "bookings"

    theatre_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("theatres.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    screen_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("screens.id", ondelete="CASCADE"),
        nullable=False
    )

    show_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("shows.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    row_number: Mapped[int] = mapped_column(Integer, nullable=False)
    col_number: Mapped[int] = mapped_column(Integer, nullable=False)

    is_booked: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    booked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        nullable=False
    )

    show: Mapped["Show"] = relationship("Show", back_populates="bookings")
    user: Mapped["User"] = relationship("User", back_populates="bookings")

    __table_args__ = (
        # Authoritative guard against double booking among active rows
        Index(
            "uq_bookings_show_seat_active",
            "show_id", "row_number", "col_number",
            unique=True,
            postgresql_where=text("is_booked"),
            sqlite_where=text("is_booked = 1"),
        ),
    )

    @property
    def coordinate(self) -> tuple[int, int]:
        return (self.row_number, self.col_number)

    def __repr__(self) -> str:
        return (
            f"<SeatBooking(id={self.id}, show_id={self.show_id}, "
            f"seat=({self.row_number}, {self.col_number}), user_id={self.user_id})>"
        )
