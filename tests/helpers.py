"""Helpers shared by the test modules."""

from typing import Dict, List

import pyotp
from httpx import AsyncClient
from sqlalchemy import select

from train_reservation_platform.models import AccessLevel, Seat, User
from train_reservation_platform.services.access_policy import SessionContext


PASSWORD = "Passw0rd!"


def context_for(user: User, access_level: AccessLevel = AccessLevel.STANDARD) -> SessionContext:
    """Session context for service-level calls."""
    return SessionContext(
        session_id=0,
        user_id=user.id,
        username=user.username,
        access_level=access_level
    )


async def seat_ids_by_code(s, *codes: str) -> List[int]:
    """Seat ids in the order the codes are given."""
    result = await s.execute(select(Seat.seat_code, Seat.id).where(Seat.seat_code.in_(codes)))
    ids = dict(result.all())
    return [ids[code] for code in codes]


async def seats_by_code(s, *codes: str) -> Dict[str, Seat]:
    result = await s.execute(
        select(Seat)
        .where(Seat.seat_code.in_(codes))
        .execution_options(populate_existing=True)
    )
    return {seat.seat_code: seat for seat in result.scalars().all()}


async def login(client: AsyncClient, username: str, password: str = PASSWORD) -> Dict[str, str]:
    """Log in through the API and return the auth header."""
    response = await client.post(
        "/api/v1/sessions",
        json={"username": username, "password": password}
    )
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def current_totp(user: User) -> str:
    return pyotp.TOTP(user.otp_secret).now()


