"""
Parking models: per-floor parking grids and theatre-scoped reservations.
"""

import uuid
from datetime import datetime, timezone
from typing import List, TYPE_CHECKING

from sqlalchemy import (
    Boolean, CheckConstraint, DateTime, ForeignKey, Index, Integer, UniqueConstraint, Uuid, text
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .theatre import Theatre


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Parking(Base):
    """One floor of a theatre's parking structure."""

    __tablename__ = "parkings"

    theatre_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("theatres.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    floor_number: Mapped[int] = mapped_column(Integer, nullable=False)
    total_rows: Mapped[int] = mapped_column(Integer, nullable=False)
    total_columns: Mapped[int] = mapped_column(Integer, nullable=False)

    theatre: Mapped["Theatre"] = relationship("Theatre", back_populates="parkings")

    reservations: Mapped[List["ParkingReservation"]] = relationship(
        "ParkingReservation",
        back_populates="parking",
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint("theatre_id", "floor_number", name="uq_parkings_theatre_floor"),
        CheckConstraint("total_rows > 0", name="ck_parkings_rows_positive"),
        CheckConstraint("total_columns > 0", name="ck_parkings_columns_positive"),
    )

    def contains(self, row_number: int, col_number: int) -> bool:
        """Check whether a 0-based spot lies inside this floor's grid."""
        return 0 <= row_number < self.total_rows and 0 <= col_number < self.total_columns

    def __repr__(self) -> str:
        return (
            f"<Parking(id={self.id}, theatre_id={self.theatre_id}, floor={self.floor_number}, "
            f"grid={self.total_rows}x{self.total_columns})>"
        )


class ParkingReservation(Base):
    """A parking spot held by one user; stays reserved across all shows."""

    __tablename__ = "parking_reservations"

    theatre_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("theatres.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    parking_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("parkings.id", ondelete="CASCADE"),
        nullable=False
    )

    # Booking transaction that created the reservation
    show_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("shows.id", ondelete="CASCADE"),
        nullable=False
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    floor_number: Mapped[int] = mapped_column(Integer, nullable=False)
    row_number: Mapped[int] = mapped_column(Integer, nullable=False)
    col_number: Mapped[int] = mapped_column(Integer, nullable=False)

    is_reserved: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    reserved_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        nullable=False
    )

    parking: Mapped["Parking"] = relationship("Parking", back_populates="reservations")

    __table_args__ = (
        Index(
            "uq_parking_reservations_theatre_spot_active",
            "theatre_id", "floor_number", "row_number", "col_number",
            unique=True,
            postgresql_where=text("is_reserved"),
            sqlite_where=text("is_reserved = 1"),
        ),
    )

    @property
    def spot_key(self) -> str:
        """Key used by the parking map, parking-floor-row-col."""
        return f"{self.parking_id}-{self.floor_number}-{self.row_number}-{self.col_number}"

    def __repr__(self) -> str:
        return (
            f"<ParkingReservation(id={self.id}, theatre_id={self.theatre_id}, "
            f"spot={self.spot_key}, user_id={self.user_id})>"
        )
