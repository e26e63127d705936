"""Error → HTTP response mapping.

Learn: this is the ONLY place that knows status codes. Services raise
taskhub.errors; ERROR_TABLE turns each kind into (status, body key).
Lookup walks the exception's MRO, so InvalidTokenError resolves to its own
entry and any future subclass inherits its parent's mapping.

Body shapes follow the public contract:
- auth / validation / conflict / server errors → {"success": false, "message": ...}
- authorization denials and missing resources → {"success": false, "error": ...}
A "stack" field is added only in development with debug on.
"""

import traceback

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskhub.config import Settings
from taskhub.errors import (
    AuthError,
    ConfigError,
    ConflictError,
    ForbiddenError,
    InvalidTokenError,
    NotFoundError,
    StorageError,
    TaskHubError,
    ValidationError,
)

logger = structlog.get_logger()

ERROR_TABLE: dict[type[TaskHubError], tuple[int, str]] = {
    ValidationError: (400, "message"),
    AuthError: (401, "message"),
    InvalidTokenError: (401, "message"),
    ForbiddenError: (403, "error"),
    NotFoundError: (404, "error"),
    ConflictError: (409, "message"),
    StorageError: (500, "message"),
    ConfigError: (500, "message"),
}

INTERNAL_ERROR = (500, "message")


def classify(exc: Exception) -> tuple[int, str]:
    """(status, body key) for any exception; unknown kinds are 500s."""
    for cls in type(exc).__mro__:
        if cls in ERROR_TABLE:
            return ERROR_TABLE[cls]
    return INTERNAL_ERROR


def error_body(
    key: str, message: str, exc: Exception, settings: Settings
) -> dict:
    body = {"success": False, key: message}
    if settings.expose_stack_traces:
        body["stack"] = "".join(traceback.format_exception(exc))
    return body


def _describe_validation(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(
            str(p) for p in err.get("loc", ()) if p not in ("body", "path", "query")
        )
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts) or "Invalid request"


def register_error_handlers(app: FastAPI) -> None:
    """Install the exception handlers on the app."""

    def _settings(request: Request) -> Settings:
        return request.app.state.settings

    @app.exception_handler(TaskHubError)
    async def handle_domain_error(request: Request, exc: TaskHubError):
        status, key = classify(exc)
        if status >= 500:
            logger.error(
                "request.failed",
                method=request.method,
                path=request.url.path,
                error_type=type(exc).__name__,
                error=exc.message,
            )
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
        return JSONResponse(
            status_code=status,
            content=error_body(key, exc.message, exc, _settings(request)),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        status, key = ERROR_TABLE[ValidationError]
        return JSONResponse(
            status_code=status,
            content=error_body(key, _describe_validation(exc), exc, _settings(request)),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            message = f"Route {request.url.path} not found"
            logger.warning("request.route_not_found", method=request.method, path=request.url.path)
        else:
            message = str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": message},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception(
            "request.unhandled_error", method=request.method, path=request.url.path
        )
        status, key = INTERNAL_ERROR
        return JSONResponse(
            status_code=status,
            content=error_body(key, "Internal Server Error", exc, _settings(request)),
        )
