"""Authentication workflow — register, login, refresh, logout.

Learn: Service layer separates business logic from HTTP routing.
Routes translate HTTP to these calls; these calls raise taskhub.errors
and never know about status codes.

Session lifecycle:
  Anonymous → (login) → Authenticated → (refresh)* → (logout) → LoggedOut
"""

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.auth.password import dummy_hash, hash_password, verify_password
from taskhub.db.models import Role, User
from taskhub.errors import AuthError, ConflictError
from taskhub.services.token_service import TokenPair, TokenService

logger = structlog.get_logger()

INVALID_CREDENTIALS = "Invalid email or password"


class AuthService:
    """Business logic for the session lifecycle."""

    def __init__(self, db: AsyncSession, tokens: TokenService):
        self.db = db
        self.tokens = tokens
        self.bcrypt_rounds = tokens.settings.bcrypt_rounds

    async def register(
        self, email: str, password: str, role: Role = Role.USER
    ) -> User:
        """Create an account with the requested role.

        Learn: the role is taken from the caller as-is. Self-service
        registration can therefore create managers and developers; see
        DESIGN.md for why this is kept, and `taskhub create-user` for the
        operator path.
        """
        existing = await self.db.execute(select(User.id).where(User.email == email))
        if existing.first() is not None:
            raise ConflictError("User already exists")

        user = User(
            email=email,
            password_hash=hash_password(password, rounds=self.bcrypt_rounds),
            role=Role(role).value,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration of the same email
            await self.db.rollback()
            raise ConflictError("User already exists")

        logger.info("auth.registered", user_id=user.id, role=user.role)
        return user

    async def login(self, email: str, password: str) -> TokenPair:
        """Email/password → access + refresh tokens.

        Unknown email and wrong password fail identically.
        """
        result = await self.db.execute(select(User).where(User.email == email))
        user = result.scalars().first()

        if not user:
            verify_password(password, dummy_hash(self.bcrypt_rounds))
            logger.warning("auth.login_failed", email=email)
            raise AuthError(INVALID_CREDENTIALS)

        if not verify_password(password, user.password_hash):
            logger.warning("auth.login_failed", email=email)
            raise AuthError(INVALID_CREDENTIALS)

        access_token = self.tokens.issue_access_token(user)
        refresh_token = await self.tokens.issue_refresh_token(user.id)
        await self.tokens.commit()

        logger.info("auth.logged_in", user_id=user.id)
        return TokenPair(access_token=access_token, refresh_token=refresh_token, user=user)

    async def refresh(self, refresh_token: str) -> TokenPair:
        """Trade a refresh token for a new pair. The old one dies."""
        return await self.tokens.rotate_refresh_token(refresh_token)

    async def logout(self, refresh_token: str) -> None:
        """Revoke the refresh token. Always succeeds."""
        await self.tokens.revoke_refresh_token(refresh_token)
