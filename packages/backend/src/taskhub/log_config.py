"""structlog setup.

Learn: every module does `logger = structlog.get_logger()` and logs
`domain.event` names with keyword context. Request-scoped values
(request_id, user_id) are bound via contextvars by the middleware and
the auth dependency, and merged into every entry here.
"""

import logging

import structlog

from taskhub.config import Settings


def configure_logging(settings: Settings) -> None:
    """Configure structlog once per process."""
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.log_json
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )
