"""
Reservation commit protocol with conflict detection.

A commit attempt claims seats with a conditional update and compares the
number of rows changed with the number of seats requested. The comparison
runs in the same transaction as the availability check and the ledger
insert, so an attempt either reserves every requested seat or leaves no
trace.
"""

import logging
from typing import Any, List, Sequence

from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..cache import CacheInvalidator
from ..database import atomic
from ..utils.exceptions import (
    InvalidRequestError,
    ReservationPlatformError,
    SeatConflictError,
    StorageFailureError,
    UnknownSeatError,
)
from ..utils.logging_config import log_business_event
from .access_policy import SessionContext, enforce_access_policy
from .reservation_service import ReservationService
from .seat_service import TOTAL_SEATS, SeatService

logger = logging.getLogger(__name__)

# serialization_failure, deadlock_detected
_RACE_SQLSTATES = {"40001", "40P01"}


def _is_lost_race(error: DBAPIError) -> bool:
    """Whether a database error means a concurrent transaction won."""
    orig = error.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in _RACE_SQLSTATES:
        return True
    # SQLite reports a busy writer this way once the busy timeout expires
    return "database is locked" in str(orig).lower()


def validate_seat_ids(seat_ids: Any) -> List[int]:
    """
    Check the shape of a seat-id list.

    Raises:
        InvalidRequestError: Unless ``seat_ids`` is a non-empty list of
            distinct positive integers no longer than the seat count
    """
    if not isinstance(seat_ids, (list, tuple)):
        raise InvalidRequestError("Seat IDs must be an array")
    if not seat_ids:
        raise InvalidRequestError("At least one seat must be selected")
    if len(seat_ids) > TOTAL_SEATS:
        raise InvalidRequestError(f"At most {TOTAL_SEATS} seats can be reserved at once")

    invalid = [
        seat_id for seat_id in seat_ids
        if isinstance(seat_id, bool) or not isinstance(seat_id, int) or seat_id < 1
    ]
    if invalid:
        raise InvalidRequestError(
            "Each seat ID must be a positive integer",
            field_errors={"seat_ids": [f"invalid seat id: {value!r}" for value in invalid]}
        )
    if len(set(seat_ids)) != len(seat_ids):
        raise InvalidRequestError("Seat IDs must not contain duplicates")

    return list(seat_ids)


class ReservationCommitService:
    """Service turning a seat-id list into a reservation, all or nothing."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.seat_service = SeatService(db)
        self.reservation_service = ReservationService(db)

    async def commit(self, context: SessionContext, seat_ids: Any) -> int:
        """
        Reserve seats for the session's user.

        No retry is attempted; a client that loses a race must re-read the
        seat map and submit a new request.

        Args:
            context: Authenticated session of the caller
            seat_ids: Requested seat ids

        Returns:
            The new reservation id

        Raises:
            InvalidRequestError: Malformed seat-id list
            PolicyDeniedError: Restricted-class seats without elevated access
            UnknownSeatError: Some ids do not exist
            SeatConflictError: Some seats are, or just became, occupied
            StorageFailureError: Transaction infrastructure failure
        """
        seat_ids = validate_seat_ids(seat_ids)

        # Car classes never change, so the gate reads them before the
        # transaction; unknown ids are reported by the existence check.
        try:
            known_seats = await self.seat_service.get_by_ids(seat_ids)
        except SQLAlchemyError as e:
            raise StorageFailureError("Database error during seat lookup") from e
        enforce_access_policy(context, known_seats)

        try:
            async with atomic(self.db):
                reservation_id = await self._claim_and_record(context.user_id, seat_ids)
        except ReservationPlatformError:
            raise
        except DBAPIError as e:
            if _is_lost_race(e):
                logger.info("Reservation attempt by user %s lost a race: %s", context.user_id, e.orig)
                raise SeatConflictError() from e
            logger.error("Database error during reservation creation: %s", e)
            raise StorageFailureError("Database error during reservation creation") from e
        except SQLAlchemyError as e:
            logger.error("Database error during reservation creation: %s", e)
            raise StorageFailureError("Database error during reservation creation") from e

        await CacheInvalidator.invalidate_seat_caches(
            list({seat.car_class for seat in known_seats})
        )
        log_business_event(
            "reservation_created",
            {"reservation_id": reservation_id, "seat_ids": seat_ids},
            user_id=context.user_id
        )
        return reservation_id

    async def _claim_and_record(self, user_id: int, seat_ids: List[int]) -> int:
        """Existence check, pre-image check, conditional claim and ledger insert."""
        seats = await self.seat_service.get_by_ids(seat_ids, for_update=True)
        if len(seats) < len(seat_ids):
            found = {seat.id for seat in seats}
            raise UnknownSeatError([seat_id for seat_id in seat_ids if seat_id not in found])

        occupied = [seat for seat in seats if not seat.is_available]
        if occupied:
            raise SeatConflictError([seat.seat_code for seat in occupied])

        claimed = await self.seat_service.set_occupied(seat_ids, True)
        if claimed != len(seat_ids):
            # Leaving the block with an exception rolls the partial claim back
            logger.warning(
                "Claimed %d of %d seats for user %s; aborting",
                claimed, len(seat_ids), user_id
            )
            raise SeatConflictError()

        return await self.reservation_service.create(user_id, seat_ids)

    async def find_conflicting_seats(self, user_id: int, seat_ids: Sequence[int]) -> List:
        """
        Find requested seats that are now occupied by someone else.

        Seats already held by the same user are left out so a client can
        highlight exactly the seats it lost.

        Args:
            user_id: User whose attempt failed
            seat_ids: Seat ids of the failed attempt

        Returns:
            The conflicting seats, ordered by id
        """
        seats = await self.seat_service.get_by_ids(seat_ids)
        own_seat_ids = await self.reservation_service.seat_ids_for_user(user_id)
        return [
            seat for seat in seats
            if seat.is_occupied and seat.id not in own_seat_ids
        ]

    async def commit_or_explain(self, context: SessionContext, seat_ids: Any) -> int:
        """
        Like ``commit``, but a ``SeatConflictError`` carries the seats lost
        to other users.
        """
        try:
            return await self.commit(context, seat_ids)
        except SeatConflictError as conflict:
            conflicting = await self.find_conflicting_seats(context.user_id, seat_ids)
            conflict.attach_conflicts(
                [seat.id for seat in conflicting],
                [seat.seat_code for seat in conflicting]
            )
            raise
