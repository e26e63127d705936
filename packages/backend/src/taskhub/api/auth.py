"""Auth API — registration, login, token refresh, logout.

Learn: Routes for the session lifecycle:
- POST /auth/register → create an account (201)
- POST /auth/login → email/password → access + refresh tokens
- POST /auth/refresh → refresh token → NEW access + refresh tokens
  (the submitted refresh token is consumed and can't be reused)
- POST /auth/logout → revoke a refresh token (idempotent)

All four are open routes: the caller either has no access token yet,
or the one they had has expired.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.auth.dependencies import get_settings
from taskhub.config import Settings
from taskhub.db.engine import get_db
from taskhub.schemas.user import (
    LoginRequest,
    LogoutResponse,
    RefreshRequest,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
)
from taskhub.services.auth_service import AuthService
from taskhub.services.token_service import TokenService

router = APIRouter(prefix="/auth")


def _svc(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AuthService:
    return AuthService(db, TokenService(settings, db))


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(body: RegisterRequest, svc: AuthService = Depends(_svc)):
    """Create a new user account."""
    user = await svc.register(body.email, body.password, body.role)
    return RegisterResponse(user=user)


# ─── Login ───────────────────────────────────────────────


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, svc: AuthService = Depends(_svc)):
    """Login with email and password → JWT tokens."""
    pair = await svc.login(body.email, body.password)
    return TokenResponse(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        user=pair.user,
    )


# ─── Refresh ────────────────────────────────────────────


@router.post("/refresh", response_model=TokenResponse)
async def refresh(body: RefreshRequest, svc: AuthService = Depends(_svc)):
    """Exchange a refresh token for a new token pair."""
    pair = await svc.refresh(body.refresh_token)
    return TokenResponse(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        user=pair.user,
    )


# ─── Logout ─────────────────────────────────────────────


@router.post("/logout", response_model=LogoutResponse)
async def logout(body: RefreshRequest, svc: AuthService = Depends(_svc)):
    """Invalidate a refresh token."""
    await svc.logout(body.refresh_token)
    return LogoutResponse()
