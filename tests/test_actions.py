from unittest.mock import AsyncMock, patch

import pytest

from matchcore import actions
from matchcore.utils.errors import AuthError, DatabaseError, ValidationError
from tests.mocks.supabase import api_error


@pytest.fixture(autouse=True)
def installed_core(core):
    actions.set_core(core)
    yield core
    actions.set_core(None)


@pytest.fixture
def mock_sleep():
    with patch("matchcore.utils.retry.asyncio.sleep", new_callable=AsyncMock) as sleep:
        yield sleep


@pytest.fixture
def signed_in(supabase_client):
    supabase_client.auth.user_id = "U123"
    return supabase_client


class TestSession:
    @pytest.mark.parametrize(
        "call",
        [
            lambda: actions.get_potential_matches(),
            lambda: actions.like_user("alice"),
            lambda: actions.get_user_matches(),
            lambda: actions.reconcile_my_matches(),
        ],
    )
    async def test_requires_session(self, supabase_client, call):
        with pytest.raises(AuthError, match="Not authenticated."):
            await call()

        assert supabase_client.calls == []


class TestGetPotentialMatches:
    async def test_uses_session_user(self, signed_in):
        candidates = await actions.get_potential_matches()
        assert [c.id for c in candidates] == ["casey", "bob", "alice"]

    async def test_paging(self, signed_in):
        candidates = await actions.get_potential_matches(limit=1, offset=1)
        assert [c.id for c in candidates] == ["bob"]


class TestLikeUser:
    async def test_like_then_match(self, signed_in, core):
        await core.likes.like_user("casey", "U123")

        result = await actions.like_user("casey")

        assert result.to_response()["isMatch"] is True
        assert result.matched_user.id == "casey"
        assert [p.id for p in await actions.get_user_matches()] == ["casey"]

    async def test_self_like_not_retried(self, signed_in, mock_sleep):
        with pytest.raises(ValidationError):
            await actions.like_user("U123")

        mock_sleep.assert_not_awaited()

    async def test_transient_failure_retried(self, signed_in, mock_sleep):
        signed_in.fail_next("likes", "insert", api_error("08006", "connection failure"))

        result = await actions.like_user("alice")

        assert result.to_response() == {"success": True, "isMatch": False}
        assert mock_sleep.await_count == 1
        assert len(signed_in.tables["likes"]) == 1

    async def test_persistent_failure_raises_after_retries(self, signed_in, mock_sleep):
        signed_in.fail_next("likes", "insert", api_error("08006"), times=10)

        with pytest.raises(DatabaseError, match="Failed to record like"):
            await actions.like_user("alice")

        assert signed_in.count_calls("likes", "insert") == 4


class TestReconcileMyMatches:
    async def test_repairs_for_session_user(self, signed_in, core):
        await core.likes.like_user("bob", "U123")
        signed_in.fail_next("matches", "upsert", api_error("57P01"))
        await actions.like_user("bob")

        assert await actions.reconcile_my_matches() == 1
        assert [p.id for p in await actions.get_user_matches()] == ["bob"]


async def test_get_core_builds_from_settings(test_settings):
    actions.set_core(None)
    client = object()

    with (
        patch("matchcore.actions.get_settings", return_value=test_settings),
        patch("matchcore.actions.get_client", new_callable=AsyncMock, return_value=client) as mock_get_client,
    ):
        first = await actions.get_core()
        second = await actions.get_core()

    assert first is second
    mock_get_client.assert_awaited_once_with(test_settings)
    assert first.profiles._client is client
