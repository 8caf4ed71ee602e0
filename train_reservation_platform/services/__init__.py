"""Business logic services for the Train Reservation Platform."""

from .user_service import UserService
from .seat_service import SeatService
from .reservation_service import ReservationService
from .reservation_commit_service import ReservationCommitService
from .consistency_service import ConsistencyService

__all__ = [
    "UserService",
    "SeatService",
    "ReservationService",
    "ReservationCommitService",
    "ConsistencyService"
]
