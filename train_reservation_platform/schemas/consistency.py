"""
Pydantic schemas for the seat consistency audit.
"""

from pydantic import BaseModel, Field


class ConsistencyReport(BaseModel):
    """Read-only comparison of occupancy flags and reservation links."""
    total_seats: int
    occupied_seats: int = Field(..., description="Seats flagged as occupied")
    seats_with_active_reservations: int
    orphaned_reservation_seats: int = Field(
        ..., description="Links whose reservation no longer exists"
    )
    inconsistent_seats: int = Field(
        ..., description="Seats flagged occupied with no backing reservation"
    )

    @property
    def is_consistent(self) -> bool:
        return (
            self.orphaned_reservation_seats == 0
            and self.inconsistent_seats == 0
            and self.occupied_seats == self.seats_with_active_reservations
        )


class ConsistencyFixResult(BaseModel):
    """Outcome of a consistency repair run."""
    seats_marked_occupied: int
    orphaned_links_removed: int
    flags_changed: int
    message: str = "Seat consistency fixed"
