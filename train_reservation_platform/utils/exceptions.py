"""
Custom exceptions for the Train Reservation Platform.
"""

from typing import Any, Dict, Optional, List, Sequence
from enum import Enum


class ErrorCode(str, Enum):
    """Standard error codes for the platform."""

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"

    # Reservation errors
    POLICY_DENIED = "POLICY_DENIED"
    UNKNOWN_SEAT = "UNKNOWN_SEAT"
    SEAT_CONFLICT = "SEAT_CONFLICT"
    NOT_FOUND_OR_FORBIDDEN = "NOT_FOUND_OR_FORBIDDEN"

    # Infrastructure errors
    STORAGE_FAILURE = "STORAGE_FAILURE"


class ReservationPlatformError(Exception):
    """Base exception class for the reservation platform."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None
    ):
        """Initialize the exception with comprehensive error information."""
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.suggestions = suggestions or []
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        result = {
            "error_code": self.error_code.value,
            "message": self.message,
        }

        if self.details:
            result["details"] = self.details

        if self.suggestions:
            result["suggestions"] = self.suggestions

        return result


class InvalidRequestError(ReservationPlatformError):
    """Exception raised for malformed input."""

    def __init__(self, message: str, field_errors: Optional[Dict[str, List[str]]] = None, **kwargs):
        super().__init__(
            message,
            error_code=ErrorCode.INVALID_REQUEST,
            details={"field_errors": field_errors} if field_errors else None,
            **kwargs
        )
        self.field_errors = field_errors or {}


class AuthenticationError(ReservationPlatformError):
    """Exception raised for authentication failures."""

    def __init__(self, message: str = "Not authenticated", **kwargs):
        super().__init__(
            message,
            error_code=ErrorCode.UNAUTHORIZED,
            suggestions=["Check your credentials", "Login again"],
            **kwargs
        )


class PolicyDeniedError(ReservationPlatformError):
    """Exception raised when the session access level is insufficient."""

    def __init__(self, message: str = "2FA required", **kwargs):
        super().__init__(
            message,
            error_code=ErrorCode.POLICY_DENIED,
            suggestions=["Complete two-factor authentication and try again"],
            **kwargs
        )


class UnknownSeatError(ReservationPlatformError):
    """Exception raised when requested seats do not exist."""

    def __init__(self, missing_seat_ids: Sequence[int], **kwargs):
        super().__init__(
            "Some requested seats do not exist",
            error_code=ErrorCode.UNKNOWN_SEAT,
            details={"missing_seat_ids": sorted(missing_seat_ids)},
            suggestions=["Refresh the seat map"],
            **kwargs
        )
        self.missing_seat_ids = sorted(missing_seat_ids)


class SeatConflictError(ReservationPlatformError):
    """Exception raised when requested seats are, or just became, occupied."""

    def __init__(
        self,
        occupied_seat_codes: Optional[Sequence[str]] = None,
        message: Optional[str] = None,
        **kwargs
    ):
        codes = list(occupied_seat_codes or [])
        if message is None:
            if codes:
                message = f"Seats no longer available: {', '.join(codes)}"
            else:
                message = "Some seats were taken by another user during reservation"
        super().__init__(
            message,
            error_code=ErrorCode.SEAT_CONFLICT,
            details={"occupied_seat_codes": codes},
            suggestions=["Refresh the seat map", "Select different seats"],
            **kwargs
        )
        self.occupied_seat_codes = codes
        self.conflicting_seat_ids: List[int] = []
        self.conflicting_seat_codes: List[str] = []

    def attach_conflicts(self, seat_ids: Sequence[int], seat_codes: Sequence[str]) -> None:
        """Record which requested seats are now held by someone else."""
        self.conflicting_seat_ids = list(seat_ids)
        self.conflicting_seat_codes = list(seat_codes)
        self.details["conflicting_seat_ids"] = self.conflicting_seat_ids
        self.details["conflicting_seat_codes"] = self.conflicting_seat_codes


class NotFoundOrForbiddenError(ReservationPlatformError):
    """Exception raised when a reservation is missing or owned by another user."""

    def __init__(self, reservation_id: int, **kwargs):
        super().__init__(
            "Reservation not found or access denied",
            error_code=ErrorCode.NOT_FOUND_OR_FORBIDDEN,
            details={"reservation_id": reservation_id},
            suggestions=["Check the reservation ID", "View your reservations"],
            **kwargs
        )


class StorageFailureError(ReservationPlatformError):
    """Exception raised when the transaction infrastructure fails."""

    def __init__(self, message: str = "Database error", **kwargs):
        super().__init__(
            message,
            error_code=ErrorCode.STORAGE_FAILURE,
            suggestions=["Try again later"],
            **kwargs
        )
