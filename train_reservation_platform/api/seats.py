"""
Seat map API endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models import CarClass
from ..schemas.seat import SeatClassResponse
from ..services.seat_service import SeatService
from ..utils.exceptions import InvalidRequestError

router = APIRouter(prefix="/seats", tags=["seats"])


@router.get("/{car_class}", response_model=SeatClassResponse)
async def get_seats_by_class(
    car_class: str,
    db: AsyncSession = Depends(get_db)
):
    """
    Get the seat map of one car class.

    Args:
        car_class: One of ``first``, ``second`` or ``economy``
        db: Database session

    Returns:
        Seats ordered by row and seat number with availability statistics
    """
    try:
        parsed_class = CarClass(car_class)
    except ValueError:
        raise InvalidRequestError(
            "Invalid car class",
            field_errors={"car_class": [f"must be one of: {', '.join(c.value for c in CarClass)}"]}
        ) from None

    return await SeatService(db).list_by_class(parsed_class)
