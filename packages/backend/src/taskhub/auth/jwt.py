"""JWT signing helpers.

Learn: JWT (JSON Web Token) provides stateless authentication.
- Access token: short-lived (15min), verified on every request
- Refresh token: long-lived (7 days), also tracked server-side

These helpers only sign and decode. Which secret, which claims and what
a valid token means is decided by TokenService.
"""

from datetime import datetime, timedelta, timezone

import jwt


class TokenError(Exception):
    """Raised when token creation/verification fails."""


def encode_token(
    claims: dict,
    secret: str,
    algorithm: str,
    expires_delta: timedelta,
) -> tuple[str, datetime]:
    """Sign claims + iat/exp. Returns (token, expires_at)."""
    now = datetime.now(timezone.utc)
    expires_at = now + expires_delta
    payload = {**claims, "iat": now, "exp": expires_at}
    return jwt.encode(payload, secret, algorithm=algorithm), expires_at


def decode_token(
    token: str,
    secret: str,
    algorithm: str,
    verify_exp: bool = True,
) -> dict:
    """Verify the signature and decode a JWT.

    Returns the payload dict on success.
    Raises TokenError on failure.
    """
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            options={"verify_exp": verify_exp, "require": ["exp", "iat"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")
