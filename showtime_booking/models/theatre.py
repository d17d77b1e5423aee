"""
Theatre and screen models describing venues and their seat grids.
"""

from typing import List, TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .show import Show
    from .parking import Parking


class Theatre(Base):
    """A registered theatre."""

    __tablename__ = "theatres"

    theatre_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    address: Mapped[str] = mapped_column(Text, nullable=True)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    state: Mapped[str] = mapped_column(String(100), nullable=False)

    screens: Mapped[List["Screen"]] = relationship(
        "Screen",
        back_populates="theatre",
        cascade="all, delete-orphan"
    )

    parkings: Mapped[List["Parking"]] = relationship(
        "Parking",
        back_populates="theatre",
        cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Theatre(id={self.id}, name='{self.theatre_name}', city='{self.city}')>"


class Screen(Base):
    """A screen inside a theatre with a fixed rows x columns seat grid."""

    __tablename__ = "screens"

    theatre_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("theatres.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    screen_number: Mapped[int] = mapped_column(Integer, nullable=False)
    total_rows: Mapped[int] = mapped_column(Integer, nullable=False)
    total_columns: Mapped[int] = mapped_column(Integer, nullable=False)

    theatre: Mapped["Theatre"] = relationship("Theatre", back_populates="screens")

    shows: Mapped[List["Show"]] = relationship(
        "Show",
        back_populates="screen",
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint("theatre_id", "screen_number", name="uq_screens_theatre_number"),
        CheckConstraint("total_rows > 0", name="ck_screens_rows_positive"),
        CheckConstraint("total_columns > 0", name="ck_screens_columns_positive"),
    )

    @property
    def total_seats(self) -> int:
        """Capacity of the screen's seat grid."""
        return self.total_rows * self.total_columns

    def contains(self, row_number: int, col_number: int) -> bool:
        """Check whether a 0-based coordinate lies inside the grid."""
        return 0 <= row_number < self.total_rows and 0 <= col_number < self.total_columns

    def __repr__(self) -> str:
        return (
            f"<Screen(id={self.id}, theatre_id={self.theatre_id}, "
            f"number={self.screen_number}, grid={self.total_rows}x{self.total_columns})>"
        )
