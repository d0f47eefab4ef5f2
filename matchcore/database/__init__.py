"""Data source access for the matchcore library."""

from matchcore.database.client import (
    DUPLICATE_KEY_CODE,
    LIKES_TABLE,
    MATCHES_TABLE,
    NOT_FOUND_CODE,
    USERS_TABLE,
    SupabaseClient,
    execute,
    get_client,
    is_duplicate_key,
    is_not_found,
)

__all__ = [
    "DUPLICATE_KEY_CODE",
    "LIKES_TABLE",
    "MATCHES_TABLE",
    "NOT_FOUND_CODE",
    "USERS_TABLE",
    "SupabaseClient",
    "execute",
    "get_client",
    "is_duplicate_key",
    "is_not_found",
]
