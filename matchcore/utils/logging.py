"""Logging configuration for the matchcore library."""

import logging
import sys
from typing import Any, Dict, Optional

import structlog
from structlog.types import Processor

from matchcore.config import settings
from matchcore.utils.errors import MatchCoreError


def configure_logging() -> None:
    """
    Configure structured logging for the application.

    Routes standard library logging through ``structlog``. Development
    environments get the ``ConsoleRenderer``; everything else gets
    ``JSONRenderer``. ``DEBUG`` forces the debug level regardless of
    ``LOG_LEVEL``.
    """
    log_level = logging.DEBUG if settings.DEBUG else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        level=log_level,
        stream=sys.stdout,
    )

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if settings.ENVIRONMENT.lower() == "development":
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str, **initial_values: Any) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger with the given name and initial values.

    Args:
        name (str): Logger name (usually `__name__`).
        **initial_values: Key-value pairs to bind to the logger context.

    Returns:
        structlog.stdlib.BoundLogger: A configured structured logger instance.
    """
    return structlog.get_logger(name).bind(**initial_values)  # type: ignore


def log_error(
    logger: structlog.stdlib.BoundLogger,
    error: BaseException,
    message: Optional[str] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Log an error with structured context.

    A ``MatchCoreError`` contributes its ``code``, ``status_code`` and
    ``details``. The traceback is attached only for server-side failures
    (status 500 and anything outside the taxonomy); client errors such as
    ``ValidationError`` or ``AuthError`` are logged without one.

    Args:
        logger (structlog.stdlib.BoundLogger): The logger instance to use.
        error (BaseException): The exception to log.
        message (Optional[str], optional): Custom message. Defaults to "An error occurred".
        extra (Optional[Dict[str, Any]], optional): Additional context to log.
    """
    context = dict(extra or {})
    context["error_type"] = error.__class__.__name__
    context["error_message"] = str(error)

    server_side = True
    if isinstance(error, MatchCoreError):
        context["error_code"] = error.code
        context["status_code"] = error.status_code
        if error.details:
            context["error_details"] = error.details
        server_side = error.status_code >= 500

    if server_side:
        context["exc_info"] = error

    logger.error(message or "An error occurred", **context)
