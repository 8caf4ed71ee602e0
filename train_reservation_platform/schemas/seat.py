"""
Pydantic schemas for seat availability.
"""

from typing import List

from pydantic import BaseModel, ConfigDict

from ..models.seat import CarClass


class SeatResponse(BaseModel):
    """Schema for a seat in an availability listing."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    car_class: CarClass
    row_number: int
    seat_number: int
    seat_code: str
    is_occupied: bool


class SeatStatistics(BaseModel):
    """Aggregate availability of a car class."""
    total: int
    occupied: int
    available: int


class SeatClassResponse(BaseModel):
    """Schema for the seats of one car class."""
    seats: List[SeatResponse]
    statistics: SeatStatistics
