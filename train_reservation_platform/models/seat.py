"""
Seat model for train car seating and occupancy tracking.
"""

import enum
from typing import List, TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, Enum, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .reservation_seat import ReservationSeat


class CarClass(str, enum.Enum):
    """Enumeration for train car classes."""
    FIRST = "first"
    SECOND = "second"
    ECONOMY = "economy"


class Seat(Base):
    """Seat model holding location and the occupancy flag."""

    __tablename__ = "seats"

    car_class: Mapped[CarClass] = mapped_column(
        Enum(CarClass, values_callable=lambda members: [m.value for m in members]),
        nullable=False,
        index=True
    )

    # Seat location information
    row_number: Mapped[int] = mapped_column(Integer, nullable=False)
    seat_number: Mapped[int] = mapped_column(Integer, nullable=False)
    seat_code: Mapped[str] = mapped_column(String(10), nullable=False, unique=True)

    # Mirrors "linked by an existing reservation"; see ConsistencyService
    is_occupied: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        index=True
    )

    # Relationships
    reservation_seats: Mapped[List["ReservationSeat"]] = relationship(
        "ReservationSeat",
        back_populates="seat"
    )

    # Constraints
    __table_args__ = (
        UniqueConstraint(
            "car_class", "row_number", "seat_number",
            name="uq_seats_class_location"
        ),
        CheckConstraint("row_number > 0", name="ck_seats_row_positive"),
        CheckConstraint("seat_number > 0", name="ck_seats_number_positive"),
    )

    @property
    def is_available(self) -> bool:
        """Check if the seat can be reserved."""
        return not self.is_occupied

    def __repr__(self) -> str:
        """String representation of the seat."""
        return (
            f"<Seat(id={self.id}, class={self.car_class.value}, "
            f"code='{self.seat_code}', occupied={self.is_occupied})>"
        )
