"""
Access policy for restricted car classes.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from ..config import get_settings
from ..models import AccessLevel, CarClass, Seat
from ..utils.exceptions import PolicyDeniedError
from ..utils.logging_config import log_security_event


@dataclass(frozen=True)
class SessionContext:
    """Per-request view of the authenticated session."""
    session_id: int
    user_id: int
    username: str
    access_level: AccessLevel = AccessLevel.STANDARD

    @property
    def is_elevated(self) -> bool:
        return self.access_level == AccessLevel.ELEVATED


def restricted_car_class() -> CarClass:
    """Car class that requires an elevated session."""
    return CarClass(get_settings().restricted_car_class)


def requires_elevation(seats: Iterable[Seat], restricted: Optional[CarClass] = None) -> bool:
    """Whether any of the seats belongs to the restricted car class."""
    restricted = restricted or restricted_car_class()
    return any(seat.car_class == restricted for seat in seats)


def enforce_access_policy(context: SessionContext, seats: Iterable[Seat]) -> None:
    """
    Reject restricted-class seats for sessions without a completed second factor.

    Raises:
        PolicyDeniedError: With a generic message; no seat details are exposed
    """
    if context.is_elevated or not requires_elevation(seats):
        return

    log_security_event(
        "restricted_class_denied",
        {"user_id": context.user_id, "session_id": context.session_id}
    )
    raise PolicyDeniedError()
