"""Pydantic schemas for users and the auth endpoints.

- RegisterRequest / LoginRequest / RefreshRequest: what you POST
- PublicUser: the only user shape the API ever returns (no hash)
- TokenResponse: login + refresh result
"""

from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from taskhub.db.models import Role
from taskhub.schemas.common import CamelModel


# ─── Auth ────────────────────────────────────────────────

class RegisterRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    role: Role = Role.USER


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RefreshRequest(CamelModel):
    """Body of /auth/refresh and /auth/logout."""
    refresh_token: str = Field(..., min_length=1)


class PublicUser(CamelModel):
    id: int
    email: str
    role: Role


class UserRead(PublicUser):
    created_at: datetime


class RegisterResponse(CamelModel):
    success: bool = True
    user: PublicUser


class TokenResponse(CamelModel):
    success: bool = True
    access_token: str
    refresh_token: str
    user: PublicUser


class LogoutResponse(CamelModel):
    success: bool = True
    message: str = "Logged out successfully"


# ─── Profile ─────────────────────────────────────────────

class ProfileUpdate(CamelModel):
    """Partial update — only email and password are accepted.

    Unknown keys (including `role`) are ignored, not applied.
    """
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6, max_length=128)


class UserResponse(CamelModel):
    success: bool = True
    user: UserRead


class UserListResponse(CamelModel):
    success: bool = True
    users: list[UserRead]
