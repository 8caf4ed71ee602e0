"""
ReservationSeat model for linking reservations to specific seats.
"""

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .reservation import Reservation
    from .seat import Seat


class ReservationSeat(Base):
    """Link between a reservation and one of the seats it holds."""

    __tablename__ = "reservation_seats"

    reservation_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("reservations.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    seat_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("seats.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Relationships
    reservation: Mapped["Reservation"] = relationship("Reservation", back_populates="reservation_seats")
    seat: Mapped["Seat"] = relationship("Seat", back_populates="reservation_seats")

    # Constraints
    __table_args__ = (
        UniqueConstraint(
            "reservation_id", "seat_id",
            name="uq_reservation_seats_reservation_seat"
        ),
    )

    def __repr__(self) -> str:
        """String representation of the seat link."""
        return (
            f"<ReservationSeat(id={self.id}, reservation_id={self.reservation_id}, "
            f"seat_id={self.seat_id})>"
        )
