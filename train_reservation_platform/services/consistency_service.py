"""
Consistency auditor reconciling seat occupancy flags with reservation links.
"""

import logging
from typing import Set

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..cache import CacheInvalidator
from ..database import atomic
from ..models import Reservation, ReservationSeat, Seat
from ..schemas.consistency import ConsistencyFixResult, ConsistencyReport
from ..utils.logging_config import log_business_event

logger = logging.getLogger(__name__)


class ConsistencyService:
    """
    Service class for seat consistency checks.

    Reservation links are the source of truth: a seat is occupied exactly
    when some existing reservation holds it.
    """

    def __init__(self, db: AsyncSession):
        """Initialize the consistency service with database session."""
        self.db = db

    def _backed_seat_ids(self):
        return (
            select(ReservationSeat.seat_id)
            .join(Reservation, Reservation.id == ReservationSeat.reservation_id)
        )

    def _orphan_link_filter(self):
        return ReservationSeat.reservation_id.not_in(select(Reservation.id))

    async def _occupied_seat_ids(self) -> Set[int]:
        result = await self.db.execute(
            select(Seat.id).where(Seat.is_occupied.is_(True))
        )
        return set(result.scalars().all())

    async def fix_seat_consistency(self) -> ConsistencyFixResult:
        """
        Recompute every occupancy flag from the reservation links and drop
        links whose reservation is gone.

        Runs as one transaction, so concurrent commits observe either the
        old flags or the repaired ones. A second run right after the first
        changes nothing.

        Returns:
            Counts of seats now occupied, links removed and flags changed
        """
        async with atomic(self.db):
            before = await self._occupied_seat_ids()

            await self.db.execute(
                update(Seat)
                .values(is_occupied=False)
                .execution_options(synchronize_session=False)
            )
            await self.db.execute(
                update(Seat)
                .where(Seat.id.in_(self._backed_seat_ids()))
                .values(is_occupied=True)
                .execution_options(synchronize_session=False)
            )
            removed = await self.db.execute(
                delete(ReservationSeat)
                .where(self._orphan_link_filter())
                .execution_options(synchronize_session=False)
            )

            after = await self._occupied_seat_ids()

        result = ConsistencyFixResult(
            seats_marked_occupied=len(after),
            orphaned_links_removed=removed.rowcount,
            flags_changed=len(before ^ after)
        )

        if result.flags_changed or result.orphaned_links_removed:
            logger.warning(
                "Seat consistency repaired: %d flags changed, %d orphaned links removed",
                result.flags_changed, result.orphaned_links_removed
            )
            await CacheInvalidator.invalidate_seat_caches()
        else:
            logger.info("Seat consistency verified: %d seats occupied", result.seats_marked_occupied)

        log_business_event("seat_consistency_fixed", result.model_dump(exclude={"message"}))
        return result

    async def get_consistency_report(self) -> ConsistencyReport:
        """Compare flags with links without changing anything."""
        total_seats = await self.db.scalar(select(func.count(Seat.id)))
        occupied_seats = await self.db.scalar(
            select(func.count(Seat.id)).where(Seat.is_occupied.is_(True))
        )
        backed = await self.db.scalar(
            select(func.count(func.distinct(ReservationSeat.seat_id)))
            .join(Reservation, Reservation.id == ReservationSeat.reservation_id)
        )
        orphaned = await self.db.scalar(
            select(func.count(ReservationSeat.id)).where(self._orphan_link_filter())
        )
        inconsistent = await self.db.scalar(
            select(func.count(Seat.id)).where(
                Seat.is_occupied.is_(True),
                Seat.id.not_in(self._backed_seat_ids())
            )
        )

        return ConsistencyReport(
            total_seats=total_seats or 0,
            occupied_seats=occupied_seats or 0,
            seats_with_active_reservations=backed or 0,
            orphaned_reservation_seats=orphaned or 0,
            inconsistent_seats=inconsistent or 0
        )
