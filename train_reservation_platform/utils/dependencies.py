"""
FastAPI dependencies for authentication and authorization.
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models.user import User
from ..services.access_policy import SessionContext
from ..services.user_service import UserService
from ..utils.auth import verify_token
from ..utils.exceptions import AuthenticationError, PolicyDeniedError


# Missing credentials are reported as UNAUTHORIZED by the dependency itself
security = HTTPBearer(auto_error=False)


async def get_session_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> SessionContext:
    """
    Resolve the bearer token to the caller's session.

    Raises:
        AuthenticationError: If the token is missing or invalid, or the
            session has ended or expired, or the user is inactive
    """
    if credentials is None:
        raise AuthenticationError()

    token_data = verify_token(credentials.credentials)
    if token_data is None or token_data.user_id is None or token_data.session_id is None:
        raise AuthenticationError("Could not validate credentials")

    user_service = UserService(db)
    session = await user_service.get_session(token_data.session_id)
    if session is None or session.user_id != token_data.user_id or session.is_expired:
        raise AuthenticationError("Session has ended")

    user = await user_service.get_user_by_id(session.user_id)
    if user is None or not user.is_active:
        raise AuthenticationError("Inactive user")

    return SessionContext(
        session_id=session.id,
        user_id=user.id,
        username=user.username,
        access_level=session.access_level
    )


async def get_current_user(
    context: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Get the user behind the current session."""
    user = await UserService(db).get_user_by_id(context.user_id)
    if user is None:
        raise AuthenticationError("Could not validate credentials")
    return user


async def get_current_admin_user(
    current_user: User = Depends(get_current_user)
) -> User:
    """
    Get the current admin user.

    Raises:
        PolicyDeniedError: If the user is not an admin
    """
    if not current_user.is_admin:
        raise PolicyDeniedError("Not enough permissions")
    return current_user


def require_admin():
    """Dependency for requiring admin permissions."""
    return get_current_admin_user
