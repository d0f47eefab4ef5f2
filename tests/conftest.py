"""pytest configuration and fixtures."""

import pytest

from matchcore.config import Settings
from matchcore.services import MatchCore
from matchcore.utils.cache import MemoryCache
from tests.mocks.supabase import FakeSupabaseClient


class FakeClock:
    """Manually advanced monotonic clock, in seconds."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def test_settings():
    return Settings(
        SUPABASE_URL="https://test.supabase.co",
        SUPABASE_KEY="test_key",
        ENVIRONMENT="test",
        CANDIDATE_CACHE_TTL_MS=5 * 60 * 1000,
        MATCHES_CACHE_TTL_MS=3 * 60 * 1000,
        RETRY_MAX_ATTEMPTS=3,
        RETRY_BASE_DELAY=0.0,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return MemoryCache(clock=clock)


@pytest.fixture
def supabase_client():
    """Fake client seeded with four users; U123 has no gender preference."""
    client = FakeSupabaseClient()
    client.add_user("U123", full_name="Uma Test", gender="female", preferences={"gender_preference": []})
    client.add_user("alice", full_name="Alice Smith", gender="female", preferences={"gender_preference": ["male"]})
    client.add_user("bob", full_name="Bob Jones", gender="male", preferences={"gender_preference": ["female"]})
    client.add_user("casey", full_name="Casey Lee", gender="other", preferences=None)
    return client


@pytest.fixture
def core(supabase_client, cache, test_settings):
    return MatchCore.build(supabase_client, cache=cache, config=test_settings)
