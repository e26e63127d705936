"""User API — own profile, and the manager-only user listing."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.auth.context import Principal
from taskhub.auth.dependencies import get_current_principal, get_settings
from taskhub.auth.permissions import AccessPolicy, Action
from taskhub.config import Settings
from taskhub.db.engine import get_db
from taskhub.schemas.user import ProfileUpdate, UserListResponse, UserResponse
from taskhub.services.user_service import UserService

router = APIRouter(prefix="/users")


def _svc(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> UserService:
    return UserService(db, bcrypt_rounds=settings.bcrypt_rounds)


def _policy(db: AsyncSession = Depends(get_db)) -> AccessPolicy:
    return AccessPolicy(db)


@router.get("/me", response_model=UserResponse)
async def get_profile(
    principal: Principal = Depends(get_current_principal),
    svc: UserService = Depends(_svc),
):
    """Current user's profile."""
    user = await svc.get_user(principal.id)
    return UserResponse(user=user)


@router.patch("/me", response_model=UserResponse)
async def update_profile(
    body: ProfileUpdate,
    principal: Principal = Depends(get_current_principal),
    svc: UserService = Depends(_svc),
):
    """Change own email and/or password. Role is not editable here."""
    user = await svc.update_profile(
        principal.id, email=body.email, password=body.password
    )
    return UserResponse(user=user)


@router.get("", response_model=UserListResponse)
async def list_users(
    principal: Principal = Depends(get_current_principal),
    policy: AccessPolicy = Depends(_policy),
    svc: UserService = Depends(_svc),
):
    """All users. Managers only."""
    policy.require(principal, Action.USER_LIST)
    return UserListResponse(users=await svc.list_users())
