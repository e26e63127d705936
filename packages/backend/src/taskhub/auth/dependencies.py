"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers to extract
and validate the current principal from the request. Protected routers
get `Depends(get_current_principal)` at include time (see api/__init__.py);
handlers that need the identity declare it again — FastAPI caches the
result, so the token is verified once per request.
"""

from typing import Optional

import structlog
from fastapi import Depends, Header, Request

from taskhub.auth.context import Principal
from taskhub.config import Settings
from taskhub.errors import AuthError, InvalidTokenError
from taskhub.services.token_service import TokenService

logger = structlog.get_logger()

TOKEN_MISSING = "Authorization token missing"
TOKEN_INVALID = "Invalid or expired token"


def get_settings(request: Request) -> Settings:
    """Settings the running app was built with."""
    return request.app.state.settings


async def get_current_principal(
    request: Request,
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> Principal:
    """Verify `Authorization: Bearer <token>` and return the Principal.

    Missing header → 401 "Authorization token missing".
    Anything else wrong → 401 "Invalid or expired token".
    """
    if not authorization:
        logger.warning(
            "auth.token_missing", method=request.method, path=request.url.path
        )
        raise AuthError(TOKEN_MISSING)

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        logger.warning(
            "auth.token_malformed", method=request.method, path=request.url.path
        )
        raise InvalidTokenError(TOKEN_INVALID)

    try:
        claims = TokenService(settings).verify_access_token(token.strip())
    except InvalidTokenError as e:
        logger.warning(
            "auth.token_rejected",
            method=request.method,
            path=request.url.path,
            error=e.message,
        )
        raise InvalidTokenError(TOKEN_INVALID)

    principal = Principal.from_claims(claims)
    request.state.principal = principal
    structlog.contextvars.bind_contextvars(user_id=principal.id)
    return principal
