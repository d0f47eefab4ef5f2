"""Cache layer for the matchcore library.

Two interchangeable backends sit behind the ``Cache`` protocol: a
process-local ``MemoryCache`` and a ``RedisCache`` for deployments that run
more than one process. Callers receive their cache by injection.
"""

import json
import time
from copy import deepcopy
from typing import Any, Callable, Dict, Optional, Protocol, Tuple
from urllib.parse import quote

import redis
import sentry_sdk
from pydantic_core import to_jsonable_python

from matchcore.config import Settings, settings
from matchcore.utils.logging import get_logger

logger = get_logger(__name__)


def user_key(user_id: str, discriminator: str) -> str:
    """
    Build a cache key scoped to a single user.

    The user id is percent-encoded so that the first ``:`` after it always
    ends the user part; two different users can never share a key.

    Args:
        user_id (str): Owner of the cached value.
        discriminator (str): Query discriminator, e.g. ``"matches:50:0"``.

    Returns:
        str: The cache key.
    """
    return f"user:{quote(str(user_id), safe='')}:{discriminator}"


class Cache(Protocol):
    """Key/value store with per-entry expiry."""

    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any, ttl_ms: int) -> None: ...

    def delete(self, key: str) -> None: ...

    def user_key(self, user_id: str, discriminator: str) -> str: ...


def _resolve_ttl(key: str, ttl_ms: int) -> int:
    if ttl_ms <= 0:
        logger.warning("Cache set without expiration, forcing default", key=key)
        return settings.DEFAULT_CACHE_TTL_MS
    return ttl_ms


class MemoryCache:
    """
    Process-local cache with absolute per-entry expiry.

    Entries live until they expire or the process exits. Expired entries are
    dropped when they are next read; there is no other eviction. Values are
    copied on the way in and out, so callers never share a cached object.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        """
        Args:
            clock (Callable[[], float]): Monotonic clock in seconds.
        """
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}

    def _now_ms(self) -> float:
        return self._clock() * 1000

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        value, expires_at = entry
        if self._now_ms() >= expires_at:
            self._entries.pop(key, None)
            logger.debug("Cache entry expired", key=key)
            return None
        return deepcopy(value)

    def set(self, key: str, value: Any, ttl_ms: int) -> None:
        ttl_ms = _resolve_ttl(key, ttl_ms)
        self._entries[key] = (deepcopy(value), self._now_ms() + ttl_ms)
        logger.debug("Cache set", key=key, ttl_ms=ttl_ms)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def user_key(self, user_id: str, discriminator: str) -> str:
        return user_key(user_id, discriminator)

    def __len__(self) -> int:
        return len(self._entries)


class RedisCache:
    """
    Redis-backed cache.

    Values are stored as JSON, so readers get plain dicts and lists back and
    must validate them into models. Any Redis failure is logged and treated as
    a cache miss; the caller then falls back to the data source.
    """

    def __init__(self, url: str, max_connections: int = 10) -> None:
        self._url = url
        self._max_connections = max_connections
        self._client: Optional[redis.Redis] = None
        self._failed = False

    def get_client(self) -> Optional[redis.Redis]:
        """
        Get or create the Redis client.

        Returns:
            Optional[redis.Redis]: Client instance, or None once a connection attempt has failed.
        """
        if self._failed:
            return None

        if self._client is None:
            try:
                pool = redis.ConnectionPool.from_url(
                    self._url,
                    max_connections=self._max_connections,
                    decode_responses=True,
                )
                self._client = redis.Redis(connection_pool=pool)
                logger.info("Redis client initialized")
            except Exception as e:
                logger.warning("Failed to initialize Redis client, caching will be disabled", error=str(e))
                self._failed = True
                return None
        return self._client

    def get(self, key: str) -> Optional[Any]:
        with sentry_sdk.start_span(op="cache.get", name=key) as span:
            client = self.get_client()
            if client is None:
                span.set_data("status", "disabled")
                return None

            try:
                raw: Optional[str] = client.get(key)  # type: ignore
                if raw is None:
                    span.set_data("status", "miss")
                    return None
                span.set_data("status", "hit")
                return json.loads(raw)
            except Exception as e:
                logger.warning("Failed to get cache", key=key, error=str(e))
                span.set_status("internal_error")
                return None

    def set(self, key: str, value: Any, ttl_ms: int) -> None:
        with sentry_sdk.start_span(op="cache.set", name=key) as span:
            ttl_ms = _resolve_ttl(key, ttl_ms)
            span.set_data("ttl_ms", ttl_ms)

            client = self.get_client()
            if client is None:
                logger.debug("Cache disabled, skipping set operation", key=key)
                span.set_data("status", "disabled")
                return

            try:
                client.set(key, json.dumps(to_jsonable_python(value)), px=ttl_ms)
                logger.debug("Cache set", key=key, ttl_ms=ttl_ms)
                span.set_data("status", "success")
            except Exception as e:
                logger.warning("Failed to set cache, continuing without cache", key=key, error=str(e))
                span.set_status("internal_error")

    def delete(self, key: str) -> None:
        with sentry_sdk.start_span(op="cache.delete", name=key) as span:
            client = self.get_client()
            if client is None:
                span.set_data("status", "disabled")
                return

            try:
                client.delete(key)
                logger.debug("Cache deleted", key=key)
                span.set_data("status", "success")
            except Exception as e:
                logger.warning("Failed to delete cache, continuing without cache", key=key, error=str(e))
                span.set_status("internal_error")

    def user_key(self, user_id: str, discriminator: str) -> str:
        return user_key(user_id, discriminator)


def create_cache(config: Optional[Settings] = None) -> Cache:
    """
    Build the cache backend selected by configuration.

    Args:
        config (Optional[Settings]): Settings to read; defaults to the global settings.

    Returns:
        Cache: ``RedisCache`` when ``REDIS_URL`` is set, otherwise ``MemoryCache``.
    """
    config = config or settings
    if config.REDIS_URL:
        return RedisCache(config.REDIS_URL)

    logger.info("No Redis configuration found, using in-process cache")
    return MemoryCache()
