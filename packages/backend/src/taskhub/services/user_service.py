"""User service — profile reads/updates and the manager-only listing."""

from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.auth.password import hash_password
from taskhub.db.models import User
from taskhub.errors import ConflictError, NotFoundError

logger = structlog.get_logger()


class UserService:
    def __init__(self, db: AsyncSession, bcrypt_rounds: int = 10):
        self.db = db
        self.bcrypt_rounds = bcrypt_rounds

    async def get_user(self, user_id: int) -> User:
        user = await self.db.get(User, user_id)
        if not user:
            raise NotFoundError(f"User with ID {user_id} not found")
        return user

    async def update_profile(
        self,
        user_id: int,
        email: Optional[str] = None,
        password: Optional[str] = None,
    ) -> User:
        """Update email and/or password. Nothing else is writable here.

        Learn: there is deliberately no `role` parameter. Role changes are
        an operator action, not a profile edit.
        """
        user = await self.get_user(user_id)

        changed = []
        if email is not None and email != user.email:
            taken = await self.db.execute(select(User.id).where(User.email == email))
            if taken.first() is not None:
                raise ConflictError("Email already in use")
            user.email = email
            changed.append("email")
        if password is not None:
            user.password_hash = hash_password(password, rounds=self.bcrypt_rounds)
            changed.append("password")

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Email already in use")

        if changed:
            logger.info("user.profile_updated", user_id=user.id, fields=changed)
        return user

    async def list_users(self) -> list[User]:
        result = await self.db.execute(select(User).order_by(User.id))
        return list(result.scalars().all())
