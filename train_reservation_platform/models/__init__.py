"""
Database models for the Train Reservation Platform.
"""

from .base import Base
from .user import User
from .user_session import UserSession, AccessLevel
from .seat import Seat, CarClass
from .reservation import Reservation
from .reservation_seat import ReservationSeat

__all__ = [
    "Base",
    "User",
    "UserSession",
    "AccessLevel",
    "Seat",
    "CarClass",
    "Reservation",
    "ReservationSeat",
]
