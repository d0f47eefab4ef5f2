"""Custom exceptions for the matchcore library."""

from typing import Any, Dict, Optional

import httpx
from postgrest import APIError


class MatchCoreError(Exception):
    """Base exception for all matchcore errors."""

    code = "UNKNOWN_ERROR"

    def __init__(self, message: str, status_code: int = 500, details: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize the error with a message and optional details.

        Args:
            message (str): Error message, safe to show to end users.
            status_code (int): HTTP status code associated with the error (default 500).
            details (Optional[Dict[str, Any]]): Additional context or debug information.
        """
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(MatchCoreError):
    """Raised when there's an issue with the application configuration."""

    code = "CONFIGURATION_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, 500, details)


class AuthError(MatchCoreError):
    """Raised when there is no valid session; the caller must log in."""

    code = "AUTH_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, 401, details)


class DatabaseError(MatchCoreError):
    """Raised when a read or write against the data source fails."""

    code = "DATABASE_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, 500, details)


class ValidationError(MatchCoreError):
    """Raised when data validation fails."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, 400, details)


class NotFoundError(MatchCoreError):
    """Raised when a requested resource is not found."""

    code = "NOT_FOUND"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, 404, details)


def handle_error(error: BaseException) -> MatchCoreError:
    """
    Normalize any exception into the matchcore error taxonomy.

    Errors already in the taxonomy pass through unchanged. PostgREST and
    transport failures become ``DatabaseError``. Anything else becomes a
    generic ``MatchCoreError``. The raw error text is kept in ``details``
    and never used as the message.

    Args:
        error (BaseException): The exception to normalize.

    Returns:
        MatchCoreError: An error whose message is safe to display.
    """
    if isinstance(error, MatchCoreError):
        return error

    details = {"error_type": error.__class__.__name__, "error": str(error)}

    if isinstance(error, APIError):
        details["code"] = error.code
        return DatabaseError("Database request failed", details=details)

    if isinstance(error, (httpx.TransportError, ConnectionError, TimeoutError)):
        return DatabaseError("Network error occurred", details=details)

    return MatchCoreError("An unexpected error occurred", details=details)
