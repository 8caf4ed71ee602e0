"""
Reservation API endpoints.
"""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..cache import CacheInvalidator
from ..database import atomic, get_db
from ..schemas.common import ErrorResponse
from ..schemas.reservation import (
    CreateReservationResponse,
    MessageResponse,
    ReservationCreateRequest,
    ReservationResponse,
)
from ..services.access_policy import SessionContext
from ..services.reservation_commit_service import ReservationCommitService
from ..services.reservation_service import ReservationService
from ..utils.dependencies import get_session_context
from ..utils.logging_config import log_business_event

router = APIRouter(prefix="/reservations", tags=["reservations"])


@router.get("", response_model=List[ReservationResponse])
async def list_reservations(
    context: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    """List the caller's reservations, newest first."""
    return await ReservationService(db).list_for_user(context.user_id)


@router.post(
    "",
    response_model=CreateReservationResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Malformed seat list"},
        403: {"model": ErrorResponse, "description": "First-class seats need 2FA"},
        404: {"model": ErrorResponse, "description": "Unknown seat"},
        409: {"model": ErrorResponse, "description": "Seats taken by another user"},
    }
)
async def create_reservation(
    request: ReservationCreateRequest,
    context: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    """
    Reserve a set of seats, all or nothing.

    A ``SEAT_CONFLICT`` response lists the seats taken by other users in
    ``conflicting_seat_ids`` so the client can refresh and re-select.
    """
    reservation_id = await ReservationCommitService(db).commit_or_explain(
        context,
        request.seat_ids
    )
    return CreateReservationResponse(id=reservation_id)


@router.delete(
    "/{reservation_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse, "description": "Reservation not found or access denied"}}
)
async def delete_reservation(
    reservation_id: int,
    context: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
):
    """Cancel one of the caller's reservations and free its seats."""
    async with atomic(db):
        released = await ReservationService(db).delete(reservation_id, context.user_id)

    await CacheInvalidator.invalidate_seat_caches(
        list({seat.car_class for seat in released})
    )
    log_business_event(
        "reservation_deleted",
        {"reservation_id": reservation_id, "seat_ids": [seat.id for seat in released]},
        user_id=context.user_id
    )
    return MessageResponse(message="Reservation deleted successfully")
