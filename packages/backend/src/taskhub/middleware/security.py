"""Security headers middleware.

Learn: API responses here carry bearer tokens and user records, so every
response gets a fixed set of hardening headers:
- X-Content-Type-Options: no MIME sniffing of JSON bodies
- X-Frame-Options: the API is never framed
- Referrer-Policy: limits referrer leakage
- Cache-Control: no-store, so token pairs never land in a shared cache
  (a route that sets its own Cache-Control keeps it)

HSTS is added only when the request arrived over HTTPS. Behind a TLS
terminating proxy the app sees plain HTTP, so X-Forwarded-Proto counts too.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}
HSTS = "max-age=31536000; includeSubDomains"


def _is_https(request: Request) -> bool:
    forwarded = request.headers.get("X-Forwarded-Proto", "")
    return request.url.scheme == "https" or forwarded.split(",")[0].strip() == "https"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add hardening headers to all responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        response.headers.update(SECURITY_HEADERS)
        response.headers.setdefault("Cache-Control", "no-store")
        if _is_https(request):
            response.headers["Strict-Transport-Security"] = HSTS
        return response
