"""
Pydantic schemas for reservations.
"""

from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field, StrictInt

from ..models.seat import CarClass


class ReservationCreateRequest(BaseModel):
    """Schema for creating a reservation."""
    seat_ids: List[StrictInt] = Field(..., description="Ids of the seats to reserve")

    model_config = ConfigDict(
        json_schema_extra={"example": {"seat_ids": [5, 6]}}
    )


class ReservedSeat(BaseModel):
    """A seat held by a reservation."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    car_class: CarClass
    row_number: int
    seat_number: int
    seat_code: str


class ReservationResponse(BaseModel):
    """Schema for a reservation with its seats."""
    id: int
    reservation_time: datetime
    car_classes: List[CarClass]
    seats: List[ReservedSeat]


class CreateReservationResponse(BaseModel):
    """Schema returned after a successful reservation."""
    id: int
    message: str = "Reservation created successfully"


class MessageResponse(BaseModel):
    """Schema for simple confirmation messages."""
    message: str
