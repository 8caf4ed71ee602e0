"""
User service for accounts, logins and session access levels.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..models import AccessLevel, User, UserSession
from ..utils.auth import get_password_hash, verify_totp_code
from ..utils.exceptions import AuthenticationError, InvalidRequestError
from ..utils.logging_config import log_security_event

logger = logging.getLogger(__name__)


class UserService:
    """Service class for user and session operations."""

    def __init__(self, db: AsyncSession):
        """
        Initialize the user service.

        Args:
            db: Database session
        """
        self.db = db

    async def create_user(
        self,
        username: str,
        name: str,
        password: str,
        otp_secret: Optional[str] = None,
        is_admin: bool = False
    ) -> User:
        """
        Create a new user.

        Raises:
            InvalidRequestError: If the username is taken
        """
        if await self.get_user_by_username(username):
            raise InvalidRequestError("Username already registered")

        user = User(
            username=username,
            name=name,
            password_hash=get_password_hash(password),
            otp_secret=otp_secret,
            is_admin=is_admin
        )

        try:
            self.db.add(user)
            await self.db.flush()
        except IntegrityError as e:
            await self.db.rollback()
            raise InvalidRequestError("Username already registered") from e
        return user

    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_user_by_username(self, username: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def authenticate_user(self, username: str, password: str) -> Optional[User]:
        """
        Authenticate a user with username and password.

        Returns:
            The user if authentication succeeded, None otherwise
        """
        user = await self.get_user_by_username(username)
        if not user or not user.is_active:
            return None

        if not user.verify_password(password):
            return None

        return user

    async def create_session(self, user: User) -> UserSession:
        """Open a standard-access session for a freshly authenticated user."""
        settings = get_settings()
        session = UserSession(
            user_id=user.id,
            access_level=AccessLevel.STANDARD,
            expires_at=datetime.now(timezone.utc) + timedelta(
                minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
            )
        )
        self.db.add(session)
        await self.db.flush()
        logger.info("Session %s opened for user %s", session.id, user.id)
        return session

    async def get_session(self, session_id: int) -> Optional[UserSession]:
        result = await self.db.execute(
            select(UserSession).where(UserSession.id == session_id)
        )
        return result.scalar_one_or_none()

    async def elevate_session(self, session_id: int, code: str) -> UserSession:
        """
        Raise a session to elevated access after a valid TOTP code.

        Raises:
            AuthenticationError: If the session is gone or the code is wrong
            InvalidRequestError: If the user has no second factor configured
        """
        session = await self.get_session(session_id)
        if session is None or session.is_expired:
            raise AuthenticationError()

        user = await self.get_user_by_id(session.user_id)
        if user is None or not user.can_do_totp:
            raise InvalidRequestError("2FA is not configured for this user")

        if not verify_totp_code(user.otp_secret, code, get_settings().totp_valid_window):
            log_security_event(
                "totp_verification_failed",
                {"user_id": user.id, "session_id": session.id}
            )
            raise AuthenticationError("Invalid TOTP code")

        session.access_level = AccessLevel.ELEVATED
        await self.db.flush()
        logger.info("Session %s elevated for user %s", session.id, user.id)
        return session

    async def delete_session(self, session_id: int) -> bool:
        """End a session; a new login starts again at standard access."""
        result = await self.db.execute(
            delete(UserSession).where(UserSession.id == session_id)
        )
        return result.rowcount > 0
