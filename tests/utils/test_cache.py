from unittest.mock import MagicMock, patch

import pytest

from matchcore.config import Settings
from matchcore.models.user import UserProfile
from matchcore.utils import cache as cache_module
from matchcore.utils.cache import MemoryCache, RedisCache, create_cache, user_key


class TestUserKey:
    def test_deterministic(self):
        assert user_key("U123", "matches:50:0") == user_key("U123", "matches:50:0")
        assert user_key("U123", "matches:50:0") == "user:U123:matches:50:0"

    def test_different_users_never_collide(self):
        assert user_key("a", "b:c") != user_key("a:b", "c")
        assert user_key("alice", "user-matches") != user_key("bob", "user-matches")

    def test_method_matches_function(self, cache):
        assert cache.user_key("alice", "user-matches") == user_key("alice", "user-matches")


class TestMemoryCache:
    def test_get_missing_key(self, cache):
        assert cache.get("missing") is None

    def test_set_then_get(self, cache):
        cache.set("key", [1, 2, 3], 1000)
        assert cache.get("key") == [1, 2, 3]

    def test_entry_expires(self, cache, clock):
        cache.set("key", "value", 1000)

        clock.advance(0.5)
        assert cache.get("key") == "value"

        clock.advance(0.5)
        assert cache.get("key") is None
        assert len(cache) == 0

    def test_set_overwrites_and_resets_expiry(self, cache, clock):
        cache.set("key", "old", 1000)
        clock.advance(0.5)
        cache.set("key", "new", 1000)
        clock.advance(0.9)

        assert cache.get("key") == "new"

    def test_non_positive_ttl_uses_default(self, cache, clock):
        cache.set("key", "value", 0)

        clock.advance(60)
        assert cache.get("key") == "value"

    def test_values_are_not_shared_with_callers(self, cache):
        profiles = [UserProfile(id="bob", full_name="Bob Jones")]
        cache.set("key", profiles, 1000)

        profiles[0].full_name = "Changed before read"
        read = cache.get("key")
        read[0].full_name = "Changed after read"
        read.append(UserProfile(id="casey"))

        assert [p.full_name for p in cache.get("key")] == ["Bob Jones"]

    def test_delete_and_clear(self, cache):
        cache.set("a", 1, 1000)
        cache.set("b", 2, 1000)

        cache.delete("a")
        cache.delete("never-set")
        assert cache.get("a") is None
        assert cache.get("b") == 2

        cache.clear()
        assert len(cache) == 0


@pytest.fixture
def redis_cache():
    return RedisCache("redis://localhost:6379/0")


class TestRedisCache:
    def test_get_client_success(self, redis_cache):
        with (
            patch.object(cache_module.redis, "Redis") as mock_redis_cls,
            patch.object(cache_module.redis, "ConnectionPool") as mock_pool,
        ):
            client = redis_cache.get_client()

            assert client is mock_redis_cls.return_value
            mock_pool.from_url.assert_called_once_with(
                "redis://localhost:6379/0", max_connections=10, decode_responses=True
            )

    def test_get_client_failure_disables_cache(self, redis_cache):
        with patch.object(cache_module.redis, "ConnectionPool") as mock_pool:
            mock_pool.from_url.side_effect = Exception("Connection failed")

            assert redis_cache.get_client() is None
            assert redis_cache.get_client() is None
            mock_pool.from_url.assert_called_once()

    def test_set_serializes_models_with_millisecond_expiry(self, redis_cache):
        mock_redis = MagicMock()
        with patch.object(redis_cache, "get_client", return_value=mock_redis):
            profile = UserProfile(id="alice", full_name="Alice")
            redis_cache.set("key", [profile], 180000)

            args, kwargs = mock_redis.set.call_args
            assert args[0] == "key"
            assert '"id":"alice"' in args[1].replace(" ", "")
            assert kwargs == {"px": 180000}

    def test_get_decodes_json(self, redis_cache):
        mock_redis = MagicMock()
        with patch.object(redis_cache, "get_client", return_value=mock_redis):
            mock_redis.get.return_value = None
            assert redis_cache.get("key") is None

            mock_redis.get.return_value = '[{"id": "alice"}]'
            assert redis_cache.get("key") == [{"id": "alice"}]

    def test_failures_behave_as_miss(self, redis_cache):
        mock_redis = MagicMock()
        mock_redis.get.side_effect = Exception("boom")
        mock_redis.set.side_effect = Exception("boom")
        with patch.object(redis_cache, "get_client", return_value=mock_redis):
            redis_cache.set("key", "value", 1000)
            assert redis_cache.get("key") is None

    def test_disabled_client_is_a_noop(self, redis_cache):
        with patch.object(redis_cache, "get_client", return_value=None):
            redis_cache.set("key", "value", 1000)
            redis_cache.delete("key")
            assert redis_cache.get("key") is None

    def test_delete(self, redis_cache):
        mock_redis = MagicMock()
        with patch.object(redis_cache, "get_client", return_value=mock_redis):
            redis_cache.delete("key")
            mock_redis.delete.assert_called_once_with("key")


class TestCreateCache:
    def test_memory_cache_without_redis(self):
        assert isinstance(create_cache(Settings(REDIS_URL=None)), MemoryCache)

    def test_redis_cache_with_url(self):
        assert isinstance(create_cache(Settings(REDIS_URL="redis://localhost:6379/0")), RedisCache)
