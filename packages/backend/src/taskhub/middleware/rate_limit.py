"""Rate limiting middleware — fixed one-minute window per IP, in process.

Learn: each (ip, bucket, minute) gets a counter. Login and register share
a stricter "auth" bucket to slow down credential stuffing. Counters live
in this middleware instance: TaskHub runs as a single node with no shared
cache, so there's nothing to coordinate. Everything runs on the event
loop thread, so plain dict updates are safe.
"""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger = structlog.get_logger()

AUTH_PATHS = ("/api/auth/login", "/api/auth/register")


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-IP per-minute request limits."""

    def __init__(self, app, default_rpm: int = 100, auth_rpm: int = 10):
        super().__init__(app)
        self.default_rpm = default_rpm
        self.auth_rpm = auth_rpm
        self._window = 0
        self._counts: dict[tuple[str, str], int] = {}

    async def dispatch(self, request: Request, call_next) -> Response:
        client_ip = request.client.host if request.client else "unknown"
        is_auth = request.url.path.startswith(AUTH_PATHS)
        rpm = self.auth_rpm if is_auth else self.default_rpm
        bucket = "auth" if is_auth else "api"

        window = int(time.time() // 60)
        if window != self._window:
            # New minute: old counters are irrelevant
            self._window = window
            self._counts.clear()

        key = (client_ip, bucket)
        count = self._counts.get(key, 0) + 1
        self._counts[key] = count

        if count > rpm:
            logger.warning("rate_limit.exceeded", ip=client_ip, bucket=bucket)
            return JSONResponse(
                status_code=429,
                content={"success": False, "message": "Rate limit exceeded. Try again later."},
                headers={"Retry-After": str(60 - int(time.time() % 60))},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(rpm)
        response.headers["X-RateLimit-Remaining"] = str(max(0, rpm - count))
        return response
