"""Domain error hierarchy.

Learn: services raise these instead of HTTPException so the same code
works from routes, the CLI and tests. Errors carry only a message; the
HTTP status is decided in exactly one place (taskhub.api.errors).
"""


class TaskHubError(Exception):
    """Base class for every error the core raises on purpose."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TaskHubError):
    """Malformed input that slipped past schema validation."""


class AuthError(TaskHubError):
    """Bad credentials, or a missing/invalid bearer token."""


class InvalidTokenError(AuthError):
    """Token signature, expiry, type or server-side record check failed."""


class ForbiddenError(TaskHubError):
    """Authenticated, but not allowed to do this."""


class NotFoundError(TaskHubError):
    """A referenced entity does not exist."""


class ConflictError(TaskHubError):
    """Uniqueness violation (e.g. email already registered)."""


class StorageError(TaskHubError):
    """The store rejected or failed a read/write."""


class ConfigError(TaskHubError):
    """The process is misconfigured (e.g. no signing secret). Fatal at boot."""
