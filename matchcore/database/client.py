"""Supabase connection utilities for the matchcore library."""

from typing import Any, Optional

import sentry_sdk
from postgrest import APIError
from supabase import AsyncClient, acreate_client

from matchcore.config import Settings, get_settings
from matchcore.utils.errors import ConfigurationError, DatabaseError
from matchcore.utils.logging import get_logger

logger = get_logger(__name__)

# PostgREST: ``.single()`` matched zero rows.
NOT_FOUND_CODE = "PGRST116"
# Postgres: unique_violation.
DUPLICATE_KEY_CODE = "23505"

USERS_TABLE = "users"
LIKES_TABLE = "likes"
MATCHES_TABLE = "matches"


def is_not_found(error: BaseException) -> bool:
    """Return True if ``error`` is PostgREST's "no rows" response."""
    return isinstance(error, APIError) and error.code == NOT_FOUND_CODE


def is_duplicate_key(error: BaseException) -> bool:
    """Return True if ``error`` is a unique-constraint violation."""
    return isinstance(error, APIError) and error.code == DUPLICATE_KEY_CODE


class SupabaseClient:
    """Singleton holder for the async Supabase client."""

    _instance: Optional[AsyncClient] = None

    @classmethod
    async def get_client(cls, config: Optional[Settings] = None) -> AsyncClient:
        """
        Get or create the async Supabase client.

        Args:
            config (Optional[Settings]): Settings to read; defaults to the global settings.

        Returns:
            AsyncClient: Shared client instance.

        Raises:
            ConfigurationError: If the Supabase URL or key is not configured.
            DatabaseError: If the client cannot be created.
        """
        if cls._instance is None:
            config = config or get_settings()
            missing = config.missing_supabase_settings()
            if missing:
                raise ConfigurationError(
                    f"Missing required environment variables: {', '.join(missing)}",
                    details={"missing": missing},
                )

            try:
                cls._instance = await acreate_client(config.SUPABASE_URL, config.SUPABASE_KEY)  # type: ignore[arg-type]
                logger.info("Supabase client created")
            except Exception as e:
                logger.error("Failed to create Supabase client", error=str(e))
                raise DatabaseError("Failed to connect to database", details={"error": str(e)}) from e
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the cached client."""
        cls._instance = None


async def get_client(config: Optional[Settings] = None) -> AsyncClient:
    """Get the shared async Supabase client."""
    return await SupabaseClient.get_client(config)


async def execute(
    query: Any,
    error_message: str,
    *,
    allow_not_found: bool = False,
    **context: Any,
) -> Optional[Any]:
    """
    Execute a PostgREST query, wrapping failures into ``DatabaseError``.

    Args:
        query: A built PostgREST request (anything with an awaitable ``execute()``).
        error_message (str): Safe message for the raised ``DatabaseError``.
        allow_not_found (bool): Return None instead of raising on ``PGRST116``.
        **context: Extra fields for the log entry and error details.

    Returns:
        Optional[Any]: The API response, or None when no row matched and that is allowed.

    Raises:
        DatabaseError: If the query fails for any other reason.
    """
    with sentry_sdk.start_span(op="db.query", name=error_message) as span:
        try:
            return await query.execute()
        except Exception as e:
            if allow_not_found and is_not_found(e):
                span.set_data("status", "not_found")
                return None

            span.set_status("internal_error")
            logger.error(error_message, error=str(e), code=getattr(e, "code", None), **context)
            raise DatabaseError(
                error_message,
                details={"error": str(e), "code": getattr(e, "code", None), **context},
            ) from e
