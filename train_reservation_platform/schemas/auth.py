"""
Authentication-related Pydantic schemas.
"""

from pydantic import BaseModel, Field

from ..models.user_session import AccessLevel


class UserLogin(BaseModel):
    """Schema for user login."""
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)


class TotpVerification(BaseModel):
    """Schema for the second-factor code."""
    code: str = Field(..., pattern=r"^\d{6}$", description="6-digit TOTP code")


class SessionInfo(BaseModel):
    """Schema for the current session as seen by the client."""
    id: int
    username: str
    name: str
    can_do_totp: bool
    access_level: AccessLevel
    is_totp: bool


class TokenResponse(BaseModel):
    """Schema for token response."""
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: SessionInfo
