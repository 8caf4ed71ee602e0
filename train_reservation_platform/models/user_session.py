"""
UserSession model tracking logins and their access level.
"""

import enum
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .user import User


class AccessLevel(str, enum.Enum):
    """Enumeration for session access levels."""
    STANDARD = "standard"
    ELEVATED = "elevated"


class UserSession(Base):
    """One row per login; deleted on logout."""

    __tablename__ = "user_sessions"

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    access_level: Mapped[AccessLevel] = mapped_column(
        Enum(AccessLevel, values_callable=lambda members: [m.value for m in members]),
        default=AccessLevel.STANDARD,
        nullable=False
    )

    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="sessions")

    @property
    def is_expired(self) -> bool:
        """Check if the session has expired."""
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            # SQLite drops the timezone on round-trip
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return datetime.now(timezone.utc) > expires_at

    def __repr__(self) -> str:
        """String representation of the session."""
        return (
            f"<UserSession(id={self.id}, user_id={self.user_id}, "
            f"access_level={self.access_level.value})>"
        )
