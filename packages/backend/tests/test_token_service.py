"""TokenService tests — issuing, verifying, rotating and revoking tokens.

Learn: these run against the service directly (no HTTP) so we can poke
at store state between steps: expire a row, delete it mid-rotation,
forge a signature.
"""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from sqlalchemy import delete, func, select

from helpers import make_settings
from taskhub.auth.jwt import TokenError, decode_token, encode_token
from taskhub.db.models import RefreshToken, User
from taskhub.errors import ConfigError, InvalidTokenError
from taskhub.services.token_service import TokenService


@pytest_asyncio.fixture()
async def user(db_session):
    u = User(email="tok@test.com", password_hash="x", role="developer")
    db_session.add(u)
    await db_session.commit()
    return u


@pytest.fixture()
def tokens(settings, db_session):
    return TokenService(settings, db_session)


async def _row_count(db_session, token: str) -> int:
    result = await db_session.execute(
        select(func.count()).select_from(RefreshToken).where(RefreshToken.token == token)
    )
    return result.scalar_one()


# ═══════════════════════════════════════════════════════════
# Configuration
# ═══════════════════════════════════════════════════════════


@pytest.mark.parametrize("field", ["access_token_secret", "refresh_token_secret"])
def test_empty_secret_is_fatal(field):
    with pytest.raises(ConfigError):
        TokenService(make_settings(**{field: ""}))


def test_placeholder_secret_rejected_outside_development():
    with pytest.raises(ValueError):
        make_settings(environment="production", access_token_secret="change-me-in-production")


# ═══════════════════════════════════════════════════════════
# Access tokens
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_access_token_claims(tokens, user):
    claims = tokens.verify_access_token(tokens.issue_access_token(user))
    assert claims["id"] == user.id
    assert claims["email"] == "tok@test.com"
    assert claims["role"] == "developer"
    assert claims["type"] == "access"
    assert claims["exp"] - claims["iat"] == 15 * 60


@pytest.mark.asyncio
async def test_access_token_signed_with_access_secret(tokens, user, settings):
    token = tokens.issue_access_token(user)
    with pytest.raises(TokenError):
        decode_token(token, settings.refresh_token_secret, settings.jwt_algorithm)


def test_expired_access_token_rejected(settings):
    token, _ = encode_token(
        {"id": 1, "email": "a@b.c", "role": "user", "type": "access"},
        settings.access_token_secret,
        settings.jwt_algorithm,
        timedelta(seconds=-5),
    )
    with pytest.raises(InvalidTokenError):
        TokenService(settings).verify_access_token(token)


def test_access_token_missing_claims_rejected(settings):
    token, _ = encode_token(
        {"id": "1", "type": "access"},
        settings.access_token_secret,
        settings.jwt_algorithm,
        timedelta(minutes=5),
    )
    with pytest.raises(InvalidTokenError):
        TokenService(settings).verify_access_token(token)


# ═══════════════════════════════════════════════════════════
# Refresh tokens
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_issue_refresh_token_persists_row(tokens, user, db_session, settings):
    token = await tokens.issue_refresh_token(user.id)
    await tokens.commit()

    result = await db_session.execute(select(RefreshToken).where(RefreshToken.token == token))
    row = result.scalars().one()
    assert row.user_id == user.id

    claims = await tokens.verify_refresh_token(token)
    assert claims["userId"] == user.id
    assert claims["type"] == "refresh"
    assert claims["exp"] - claims["iat"] == settings.refresh_token_expire_days * 86400


@pytest.mark.asyncio
async def test_refresh_tokens_are_unique(tokens, user):
    a = await tokens.issue_refresh_token(user.id)
    b = await tokens.issue_refresh_token(user.id)
    assert a != b


@pytest.mark.asyncio
async def test_unknown_refresh_token_rejected(tokens, user, settings):
    """Valid signature but never stored → rejected."""
    token, _ = encode_token(
        {"userId": user.id, "type": "refresh"},
        settings.refresh_token_secret,
        settings.jwt_algorithm,
        timedelta(days=1),
    )
    with pytest.raises(InvalidTokenError):
        await tokens.verify_refresh_token(token)


@pytest.mark.asyncio
async def test_stored_expiry_is_authoritative(tokens, user, db_session):
    token = await tokens.issue_refresh_token(user.id)
    await tokens.commit()

    row = (
        await db_session.execute(select(RefreshToken).where(RefreshToken.token == token))
    ).scalars().one()
    row.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
    await db_session.commit()

    with pytest.raises(InvalidTokenError):
        await tokens.verify_refresh_token(token)


@pytest.mark.asyncio
async def test_forged_refresh_token_rejected_even_when_stored(tokens, user, db_session):
    """A row alone isn't enough, the signature must verify too."""
    forged, expires_at = encode_token(
        {"userId": user.id, "type": "refresh"},
        "some-other-secret",
        "HS256",
        timedelta(days=1),
    )
    db_session.add(RefreshToken(token=forged, user_id=user.id, expires_at=expires_at))
    await db_session.commit()

    with pytest.raises(InvalidTokenError):
        await tokens.verify_refresh_token(forged)


@pytest.mark.asyncio
async def test_access_token_is_not_a_refresh_token(tokens, user):
    with pytest.raises(InvalidTokenError):
        await tokens.verify_refresh_token(tokens.issue_access_token(user))


# ═══════════════════════════════════════════════════════════
# Rotation
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_rotate_replaces_row(tokens, user, db_session):
    old = await tokens.issue_refresh_token(user.id)
    await tokens.commit()

    pair = await tokens.rotate_refresh_token(old)

    assert pair.user.id == user.id
    assert pair.refresh_token != old
    assert await _row_count(db_session, old) == 0
    assert await _row_count(db_session, pair.refresh_token) == 1
    assert tokens.verify_access_token(pair.access_token)["id"] == user.id


@pytest.mark.asyncio
async def test_rotate_loses_race(tokens, user, db_session, monkeypatch):
    """Another request consumes the token between our check and our delete.

    Learn: we simulate the winner by deleting the row right after
    verification succeeds. The loser's DELETE then affects 0 rows and
    rotation must fail without minting anything.
    """
    old = await tokens.issue_refresh_token(user.id)
    await tokens.commit()

    original_verify = tokens.verify_refresh_token

    async def verify_then_lose(token):
        claims = await original_verify(token)
        await db_session.execute(delete(RefreshToken).where(RefreshToken.token == token))
        await db_session.commit()
        return claims

    monkeypatch.setattr(tokens, "verify_refresh_token", verify_then_lose)

    with pytest.raises(InvalidTokenError):
        await tokens.rotate_refresh_token(old)

    total = (
        await db_session.execute(select(func.count()).select_from(RefreshToken))
    ).scalar_one()
    assert total == 0


@pytest.mark.asyncio
async def test_deleting_user_revokes_refresh_tokens(tokens, user, db_session):
    old = await tokens.issue_refresh_token(user.id)
    await tokens.commit()

    await db_session.execute(
        delete(User).where(User.id == user.id).execution_options(synchronize_session=False)
    )
    await db_session.commit()

    assert await _row_count(db_session, old) == 0
    with pytest.raises(InvalidTokenError):
        await tokens.rotate_refresh_token(old)


# ═══════════════════════════════════════════════════════════
# Revocation + cleanup
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_revoke_is_idempotent(tokens, user, db_session):
    token = await tokens.issue_refresh_token(user.id)
    await tokens.commit()

    await tokens.revoke_refresh_token(token)
    await tokens.revoke_refresh_token(token)

    assert await _row_count(db_session, token) == 0
    with pytest.raises(InvalidTokenError):
        await tokens.verify_refresh_token(token)


@pytest.mark.asyncio
async def test_purge_expired(tokens, user, db_session):
    live = await tokens.issue_refresh_token(user.id)
    stale = await tokens.issue_refresh_token(user.id)
    await tokens.commit()

    row = (
        await db_session.execute(select(RefreshToken).where(RefreshToken.token == stale))
    ).scalars().one()
    row.expires_at = datetime.now(timezone.utc) - timedelta(days=1)
    await db_session.commit()

    assert await tokens.purge_expired() == 1
    assert await _row_count(db_session, stale) == 0
    assert await _row_count(db_session, live) == 1
