"""
Reservation model for seats held by a user.
"""

from typing import List, TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .user import User
    from .reservation_seat import ReservationSeat


class Reservation(Base):
    """Reservation model; owns its seat links."""

    __tablename__ = "reservations"

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="reservations")

    reservation_seats: Mapped[List["ReservationSeat"]] = relationship(
        "ReservationSeat",
        back_populates="reservation",
        cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        """String representation of the reservation."""
        return f"<Reservation(id={self.id}, user_id={self.user_id})>"
