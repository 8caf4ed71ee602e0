"""
Seat service for seat availability queries and occupancy changes.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Seat, CarClass
from ..schemas.seat import SeatResponse, SeatStatistics, SeatClassResponse
from ..cache import get_cache, CacheKeyBuilder, CacheTTL

logger = logging.getLogger(__name__)


# Rows and seats per row of each car
SEAT_LAYOUT: Dict[CarClass, Tuple[int, int]] = {
    CarClass.FIRST: (10, 2),
    CarClass.SECOND: (15, 3),
    CarClass.ECONOMY: (18, 4),
}

# A reservation can never hold more seats than the train has
TOTAL_SEATS = sum(rows * seats_per_row for rows, seats_per_row in SEAT_LAYOUT.values())

SEAT_CODE_PREFIX: Dict[CarClass, str] = {
    CarClass.FIRST: "F",
    CarClass.SECOND: "S",
    CarClass.ECONOMY: "E",
}


def build_seat_code(car_class: CarClass, row_number: int, seat_number: int) -> str:
    """Build the display code of a seat, e.g. ``F1A`` for first class row 1 seat 1."""
    return f"{SEAT_CODE_PREFIX[car_class]}{row_number}{chr(ord('A') + seat_number - 1)}"


class SeatService:
    """
    Service class for the seat table.

    The service applies no concurrency control of its own; occupancy changes
    must run inside the caller's transaction.
    """

    def __init__(self, db: AsyncSession):
        """Initialize the seat service with database session."""
        self.db = db
        self.cache = get_cache()

    async def seed_seats(
        self,
        layout: Optional[Dict[CarClass, Tuple[int, int]]] = None
    ) -> int:
        """
        Create the seats of every car class that are not present yet.

        Args:
            layout: Mapping of car class to (rows, seats per row)

        Returns:
            Number of seats created
        """
        layout = layout or SEAT_LAYOUT

        result = await self.db.execute(
            select(Seat.car_class, Seat.row_number, Seat.seat_number)
        )
        existing = {(row.car_class, row.row_number, row.seat_number) for row in result}

        created = 0
        for car_class, (rows, seats_per_row) in layout.items():
            for row_number in range(1, rows + 1):
                for seat_number in range(1, seats_per_row + 1):
                    if (car_class, row_number, seat_number) in existing:
                        continue
                    self.db.add(Seat(
                        car_class=car_class,
                        row_number=row_number,
                        seat_number=seat_number,
                        seat_code=build_seat_code(car_class, row_number, seat_number),
                        is_occupied=False
                    ))
                    created += 1

        await self.db.flush()
        return created

    async def list_by_class(self, car_class: CarClass) -> SeatClassResponse:
        """
        Get all seats of a car class with availability statistics.

        Args:
            car_class: Car class to list

        Returns:
            Seats ordered by row and seat number plus statistics
        """
        # The version is read before the database so a listing built from
        # pre-change rows can only land under a key writers already retired
        version = await self.cache.get_version(
            CacheKeyBuilder.seat_class_version(car_class.value)
        )
        cache_key = CacheKeyBuilder.seat_class(car_class.value, version)
        cached = await self.cache.get(cache_key)
        if cached:
            return SeatClassResponse(**cached)

        seats_result = await self.db.execute(
            select(Seat)
            .where(Seat.car_class == car_class)
            .order_by(Seat.row_number, Seat.seat_number)
            .execution_options(populate_existing=True)
        )
        seats = seats_result.scalars().all()

        statistics = await self.get_statistics(car_class)

        response = SeatClassResponse(
            seats=[SeatResponse.model_validate(seat) for seat in seats],
            statistics=statistics
        )

        await self.cache.set(cache_key, response.model_dump(mode="json"), CacheTTL.SEAT_CLASS)
        return response

    async def get_statistics(self, car_class: CarClass) -> SeatStatistics:
        """Count total, occupied and available seats of a car class."""
        result = await self.db.execute(
            select(
                func.count(Seat.id),
                func.count(Seat.id).filter(Seat.is_occupied.is_(True))
            ).where(Seat.car_class == car_class)
        )
        total, occupied = result.one()
        return SeatStatistics(
            total=total,
            occupied=occupied,
            available=total - occupied
        )

    async def get_by_ids(self, seat_ids: Iterable[int], for_update: bool = False) -> List[Seat]:
        """
        Get seats by id.

        Unknown ids are simply absent from the result; callers compare sizes.

        Args:
            seat_ids: Seat ids to fetch
            for_update: Lock the rows until the end of the transaction

        Returns:
            The seats that exist, ordered by id
        """
        seat_ids = list(seat_ids)
        if not seat_ids:
            return []

        query = (
            select(Seat)
            .where(Seat.id.in_(seat_ids))
            .order_by(Seat.id)
            # Rows may already sit in the identity map with a stale flag
            .execution_options(populate_existing=True)
        )
        if for_update:
            query = query.with_for_update()

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def set_occupied(self, seat_ids: Sequence[int], occupied: bool) -> int:
        """
        Conditionally flip the occupancy flag of seats.

        Only rows currently in the opposite state are touched, so the return
        value tells the caller how many seats actually changed hands.

        Args:
            seat_ids: Seat ids to update
            occupied: Target occupancy state

        Returns:
            Number of rows changed
        """
        if not seat_ids:
            return 0

        result = await self.db.execute(
            update(Seat)
            .where(
                Seat.id.in_(list(seat_ids)),
                Seat.is_occupied == (not occupied)
            )
            .values(is_occupied=occupied)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
