"""
User model for authentication and user management.
"""

from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import Boolean, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base
from ..utils.auth import get_password_hash, verify_password

if TYPE_CHECKING:
    from .reservation import Reservation
    from .user_session import UserSession


class User(Base):
    """User model for authentication and profile management."""

    __tablename__ = "users"

    # User identification and authentication
    username: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
        index=True
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Display name
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    # Base32 TOTP secret; users without one cannot reach elevated access
    otp_secret: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    # User permissions
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    reservations: Mapped[List["Reservation"]] = relationship(
        "Reservation",
        back_populates="user",
        cascade="all, delete-orphan"
    )

    sessions: Mapped[List["UserSession"]] = relationship(
        "UserSession",
        back_populates="user",
        cascade="all, delete-orphan"
    )

    # Constraints
    __table_args__ = (
        UniqueConstraint("username", name="uq_users_username"),
    )

    @property
    def can_do_totp(self) -> bool:
        """Whether the user has a second factor configured."""
        return bool(self.otp_secret)

    def set_password(self, password: str) -> None:
        """Hash and set the user's password."""
        self.password_hash = get_password_hash(password)

    def verify_password(self, password: str) -> bool:
        """Verify the user's password against the stored hash."""
        return verify_password(password, self.password_hash)

    def __repr__(self) -> str:
        """String representation of the user."""
        return f"<User(id={self.id}, username='{self.username}', name='{self.name}')>"
