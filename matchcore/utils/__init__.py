"""Utils package for the matchcore library."""

from matchcore.utils.cache import Cache, MemoryCache, RedisCache, create_cache, user_key
from matchcore.utils.errors import (
    AuthError,
    ConfigurationError,
    DatabaseError,
    MatchCoreError,
    NotFoundError,
    ValidationError,
    handle_error,
)
from matchcore.utils.logging import configure_logging, get_logger, log_error
from matchcore.utils.retry import with_retry

__all__ = [
    "AuthError",
    "Cache",
    "ConfigurationError",
    "DatabaseError",
    "MatchCoreError",
    "MemoryCache",
    "NotFoundError",
    "RedisCache",
    "ValidationError",
    "configure_logging",
    "create_cache",
    "get_logger",
    "handle_error",
    "log_error",
    "user_key",
    "with_retry",
]
