"""
Reservation ledger: reservations and the seats they hold.
"""

import logging
from typing import List, Sequence, Set

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Reservation, ReservationSeat, Seat
from ..schemas.reservation import ReservationResponse, ReservedSeat
from ..utils.exceptions import NotFoundOrForbiddenError
from .seat_service import SeatService

logger = logging.getLogger(__name__)


class ReservationService:
    """
    Service class for the reservation ledger.

    ``create`` and ``delete`` do not open transactions themselves; they run in
    the caller's transaction so that seat occupancy and links change together.
    """

    def __init__(self, db: AsyncSession):
        """Initialize the reservation service with database session."""
        self.db = db
        self.seat_service = SeatService(db)

    async def list_for_user(self, user_id: int) -> List[ReservationResponse]:
        """
        Get a user's reservations with nested seat details.

        Args:
            user_id: Owner of the reservations

        Returns:
            Reservations newest first, seats ordered by row then seat number
        """
        result = await self.db.execute(
            select(
                Reservation.id,
                Reservation.created_at,
                Seat
            )
            .join(ReservationSeat, ReservationSeat.reservation_id == Reservation.id)
            .join(Seat, Seat.id == ReservationSeat.seat_id)
            .where(Reservation.user_id == user_id)
            .order_by(
                Reservation.created_at.desc(),
                Reservation.id.desc(),
                Seat.row_number,
                Seat.seat_number
            )
        )

        reservations: dict = {}
        for reservation_id, created_at, seat in result.all():
            if reservation_id not in reservations:
                reservations[reservation_id] = ReservationResponse(
                    id=reservation_id,
                    reservation_time=created_at,
                    car_classes=[],
                    seats=[]
                )
            entry = reservations[reservation_id]
            if seat.car_class not in entry.car_classes:
                entry.car_classes.append(seat.car_class)
            entry.seats.append(ReservedSeat.model_validate(seat))

        # dicts keep insertion order, which is the query order
        return list(reservations.values())

    async def seat_ids_for_user(self, user_id: int) -> Set[int]:
        """Get the ids of all seats currently held by a user's reservations."""
        result = await self.db.execute(
            select(ReservationSeat.seat_id)
            .join(Reservation, Reservation.id == ReservationSeat.reservation_id)
            .where(Reservation.user_id == user_id)
        )
        return set(result.scalars().all())

    async def create(self, user_id: int, seat_ids: Sequence[int]) -> int:
        """
        Insert a reservation and its seat links.

        Must only be called once the seats have been claimed in the same
        transaction.

        Args:
            user_id: Owner of the reservation
            seat_ids: Seats held by the reservation

        Returns:
            The new reservation id
        """
        reservation = Reservation(
            user_id=user_id,
            reservation_seats=[ReservationSeat(seat_id=seat_id) for seat_id in seat_ids]
        )
        self.db.add(reservation)
        await self.db.flush()
        return reservation.id

    async def _lock_owned(self, reservation_id: int, user_id: int) -> None:
        """Lock the reservation row if ``user_id`` owns it."""
        result = await self.db.execute(
            select(Reservation.id)
            .where(
                Reservation.id == reservation_id,
                Reservation.user_id == user_id
            )
            .with_for_update()
        )
        if result.scalar_one_or_none() is None:
            raise NotFoundOrForbiddenError(reservation_id)

    async def delete(self, reservation_id: int, user_id: int) -> List[Seat]:
        """
        Delete a reservation owned by ``user_id`` and release its seats.

        Args:
            reservation_id: Reservation to delete
            user_id: User requesting the deletion

        Returns:
            The released seats

        Raises:
            NotFoundOrForbiddenError: If the reservation does not exist or
                belongs to another user
        """
        await self._lock_owned(reservation_id, user_id)

        # Release only the seats whose links this transaction removed
        links_result = await self.db.execute(
            delete(ReservationSeat)
            .where(ReservationSeat.reservation_id == reservation_id)
            .returning(ReservationSeat.seat_id)
            .execution_options(synchronize_session=False)
        )
        seat_ids = list(links_result.scalars().all())

        deleted = await self.db.execute(
            delete(Reservation)
            .where(
                Reservation.id == reservation_id,
                Reservation.user_id == user_id
            )
            .execution_options(synchronize_session=False)
        )
        if deleted.rowcount == 0:
            raise NotFoundOrForbiddenError(reservation_id)

        released = await self.seat_service.set_occupied(seat_ids, False)
        if released != len(seat_ids):
            # The flag had already drifted; the auditor reports such seats
            logger.warning(
                "Reservation %s released %d of %d seats",
                reservation_id, released, len(seat_ids)
            )

        return await self.seat_service.get_by_ids(seat_ids)
