"""
Show model for a single scheduled screening.
"""

from datetime import date, time
from decimal import Decimal
from typing import List, TYPE_CHECKING

from sqlalchemy import CheckConstraint, Date, ForeignKey, Integer, Numeric, String, Time
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .theatre import Theatre, Screen
    from .seat_booking import SeatBooking


class Show(Base):
    """A screening of a movie on one screen at one time."""

    __tablename__ = "shows"

    theatre_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("theatres.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    screen_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("screens.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    movie_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    language: Mapped[str] = mapped_column(String(50), nullable=False)

    show_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)

    ticket_price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        default=Decimal('0.00')
    )

    # Display cache of capacity minus booked seats, never used for admission
    available_seats: Mapped[int] = mapped_column(Integer, nullable=False)

    theatre: Mapped["Theatre"] = relationship("Theatre")
    screen: Mapped["Screen"] = relationship("Screen", back_populates="shows")

    bookings: Mapped[List["SeatBooking"]] = relationship(
        "SeatBooking",
        back_populates="show",
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("ticket_price >= 0", name="ck_shows_ticket_price_non_negative"),
    )

    @property
    def is_sold_out(self) -> bool:
        """Check if the display counter says the show is sold out."""
        return self.available_seats <= 0

    def __repr__(self) -> str:
        return (
            f"<Show(id={self.id}, movie='{self.movie_name}', "
            f"date={self.show_date}, available={self.available_seats})>"
        )
