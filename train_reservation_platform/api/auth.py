"""
Session API endpoints: login, second factor, logout.
"""

from datetime import timedelta
from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..database import atomic, get_db
from ..models import AccessLevel, User, UserSession
from ..schemas.auth import SessionInfo, TokenResponse, TotpVerification, UserLogin
from ..schemas.reservation import MessageResponse
from ..services.access_policy import SessionContext
from ..services.user_service import UserService
from ..utils.auth import create_access_token
from ..utils.dependencies import get_current_user, get_session_context
from ..utils.exceptions import AuthenticationError
from ..utils.logging_config import log_security_event


router = APIRouter(prefix="/sessions", tags=["authentication"])


def _session_info(user: User, access_level: AccessLevel) -> SessionInfo:
    return SessionInfo(
        id=user.id,
        username=user.username,
        name=user.name,
        can_do_totp=user.can_do_totp,
        access_level=access_level,
        is_totp=access_level == AccessLevel.ELEVATED
    )


@router.post("", response_model=TokenResponse)
async def login(
    login_data: UserLogin,
    db: AsyncSession = Depends(get_db)
) -> Any:
    """
    Authenticate with username and password.

    The new session starts at standard access; restricted car classes need
    a follow-up call to ``POST /sessions/totp``.
    """
    user_service = UserService(db)

    async with atomic(db):
        user = await user_service.authenticate_user(
            login_data.username,
            login_data.password
        )
        if user is not None:
            session: UserSession = await user_service.create_session(user)

    if user is None:
        log_security_event("login_failed", {"username": login_data.username})
        raise AuthenticationError("Incorrect username or password")

    access_token = create_access_token(
        data={"sub": str(user.id), "sid": str(session.id)},
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )

    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=_session_info(user, session.access_level)
    )


@router.post("/totp", response_model=SessionInfo)
async def verify_totp(
    verification: TotpVerification,
    context: SessionContext = Depends(get_session_context),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> Any:
    """Complete the second factor and elevate the current session."""
    async with atomic(db):
        session = await UserService(db).elevate_session(
            context.session_id,
            verification.code
        )

    return _session_info(current_user, session.access_level)


@router.get("/current", response_model=SessionInfo)
async def get_current_session(
    context: SessionContext = Depends(get_session_context),
    current_user: User = Depends(get_current_user)
) -> Any:
    """Describe the current session."""
    return _session_info(current_user, context.access_level)


@router.delete("/current", response_model=MessageResponse)
async def logout(
    context: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
) -> Any:
    """End the current session."""
    async with atomic(db):
        await UserService(db).delete_session(context.session_id)

    return MessageResponse(message="Logged out")
