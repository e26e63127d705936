"""Token service — issue, verify, rotate and revoke access/refresh tokens.

Learn: the two token kinds are verified very differently.

- Access token: stateless. Signature + expiry + claim shape. No DB.
- Refresh token: stateful. The row must exist in refresh_tokens with a
  stored expires_at still in the future, AND the signature must verify.
  Deleting the row revokes the token even though the JWT is still
  cryptographically fine.

Rotation deletes the old row with one DELETE and looks at the rowcount.
That delete is the linearization point: if two requests race with the
same refresh token, exactly one sees rowcount == 1; the other sees 0 and
fails. No locks needed.
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.auth.jwt import TokenError, decode_token, encode_token
from taskhub.config import Settings
from taskhub.db.models import RefreshToken, User
from taskhub.errors import ConfigError, InvalidTokenError, StorageError

logger = structlog.get_logger()

ACCESS = "access"
REFRESH = "refresh"


@dataclass
class TokenPair:
    """Result of login and refresh: both tokens plus the user they belong to."""

    access_token: str
    refresh_token: str
    user: User


class TokenService:
    """Mints and checks bearer tokens.

    `db` is only needed for refresh-token operations; access tokens are
    handled without touching the store.
    """

    def __init__(self, settings: Settings, db: Optional[AsyncSession] = None):
        if not settings.access_token_secret or not settings.refresh_token_secret:
            raise ConfigError("JWT signing secrets are not configured")
        self.settings = settings
        self.db = db

    # ─── Access tokens ──────────────────────────────────

    def issue_access_token(self, user: User) -> str:
        token, _ = encode_token(
            {"id": user.id, "email": user.email, "role": user.role, "type": ACCESS},
            self.settings.access_token_secret,
            self.settings.jwt_algorithm,
            timedelta(minutes=self.settings.access_token_expire_minutes),
        )
        return token

    def verify_access_token(self, token: str) -> dict:
        """Return the claims, or raise InvalidTokenError."""
        try:
            claims = decode_token(
                token,
                self.settings.access_token_secret,
                self.settings.jwt_algorithm,
            )
        except TokenError as e:
            raise InvalidTokenError(str(e))

        if claims.get("type") != ACCESS:
            raise InvalidTokenError("Not an access token")
        if not isinstance(claims.get("id"), int) or "email" not in claims or "role" not in claims:
            raise InvalidTokenError("Malformed access token")
        return claims

    # ─── Refresh tokens ─────────────────────────────────

    async def issue_refresh_token(self, user_id: int) -> str:
        """Sign a refresh token and persist its row (caller commits)."""
        token, expires_at = encode_token(
            # jti keeps two tokens minted in the same second distinct
            {"userId": user_id, "type": REFRESH, "jti": secrets.token_hex(16)},
            self.settings.refresh_token_secret,
            self.settings.jwt_algorithm,
            timedelta(days=self.settings.refresh_token_expire_days),
        )
        self.db.add(RefreshToken(token=token, user_id=user_id, expires_at=expires_at))
        try:
            await self.db.flush()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("token.persist_failed", user_id=user_id, error=str(e))
            raise StorageError("Failed to persist refresh token") from e
        return token

    async def verify_refresh_token(self, token: str) -> dict:
        """Store check first, then signature. Either failing → InvalidTokenError.

        Learn: expiry is judged on the stored expires_at, not the JWT's exp
        claim. The signature check therefore skips exp validation; the row
        is the authority on whether this token is still live.
        """
        result = await self.db.execute(
            select(RefreshToken.id).where(
                RefreshToken.token == token,
                RefreshToken.expires_at >= datetime.now(timezone.utc),
            )
        )
        if result.first() is None:
            raise InvalidTokenError("Invalid or expired refresh token")

        try:
            claims = decode_token(
                token,
                self.settings.refresh_token_secret,
                self.settings.jwt_algorithm,
                verify_exp=False,
            )
        except TokenError:
            raise InvalidTokenError("Invalid refresh token")

        if claims.get("type") != REFRESH or not isinstance(claims.get("userId"), int):
            raise InvalidTokenError("Invalid refresh token")
        return claims

    async def rotate_refresh_token(self, old_token: str) -> TokenPair:
        """Consume old_token and issue a fresh access + refresh pair.

        The user is re-read from the store so a role change since the
        refresh token was issued shows up in the new access token.
        """
        claims = await self.verify_refresh_token(old_token)

        result = await self.db.execute(
            delete(RefreshToken)
            .where(RefreshToken.token == old_token)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            # Somebody else consumed it between our check and our delete
            await self.db.rollback()
            logger.warning("token.rotation_lost_race", user_id=claims["userId"])
            raise InvalidTokenError("Invalid or expired refresh token")

        user_result = await self.db.execute(
            select(User)
            .where(User.id == claims["userId"])
            .execution_options(populate_existing=True)
        )
        user = user_result.scalars().first()
        if not user:
            await self.db.rollback()
            raise InvalidTokenError("Invalid or expired refresh token")

        access_token = self.issue_access_token(user)
        refresh_token = await self.issue_refresh_token(user.id)
        await self.commit()

        logger.info("token.rotated", user_id=user.id)
        return TokenPair(access_token=access_token, refresh_token=refresh_token, user=user)

    async def revoke_refresh_token(self, token: str) -> None:
        """Delete the token's row. Unknown tokens are fine (idempotent)."""
        result = await self.db.execute(
            delete(RefreshToken)
            .where(RefreshToken.token == token)
            .execution_options(synchronize_session=False)
        )
        await self.commit()
        logger.info("token.revoked", removed=result.rowcount)

    async def purge_expired(self) -> int:
        """Delete every row whose stored expiry has passed."""
        result = await self.db.execute(
            delete(RefreshToken)
            .where(RefreshToken.expires_at < datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        await self.commit()
        logger.info("token.purged", removed=result.rowcount)
        return result.rowcount

    async def commit(self) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StorageError("Failed to write refresh tokens") from e
