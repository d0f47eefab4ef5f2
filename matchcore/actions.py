"""Session-bound entry points called by the UI's action handlers.

Each action resolves the signed-in user from the session, then delegates to
the services. Errors reach the caller as ``MatchCoreError`` subclasses whose
messages are safe to display.
"""

from typing import List, Optional

from matchcore.config import get_settings
from matchcore.database.client import get_client
from matchcore.models.match import MatchResult
from matchcore.models.user import UserProfile
from matchcore.services import MatchCore
from matchcore.utils.retry import with_retry

_core: Optional[MatchCore] = None


async def get_core() -> MatchCore:
    """Get the shared services, building them from settings on first use."""
    global _core
    if _core is None:
        config = get_settings()
        _core = MatchCore.build(await get_client(config), config=config)
    return _core


def set_core(core: Optional[MatchCore]) -> None:
    """Install the services used by the actions; None resets to lazy construction."""
    global _core
    _core = core


async def get_potential_matches(limit: Optional[int] = None, offset: int = 0) -> List[UserProfile]:
    """
    Get a page of candidates for the signed-in user.

    The page size defaults to ``CANDIDATE_PAGE_SIZE``.

    Raises:
        AuthError: If there is no valid session.
        DatabaseError: If the data source read fails.
    """
    core = await get_core()
    current = await core.profiles.get_authenticated_user()
    return await core.matches.get_potential_matches(current.user_id, limit=limit, offset=offset)


async def like_user(liked_user_id: str) -> MatchResult:
    """
    Like another user as the signed-in user, retrying transient failures.

    Raises:
        AuthError: If there is no valid session.
        ValidationError: If the user likes themselves.
        DatabaseError: If the like cannot be recorded after retries.
    """
    core = await get_core()
    current = await core.profiles.get_authenticated_user()
    return await with_retry(lambda: core.likes.like_user(current.user_id, liked_user_id))


async def get_user_matches() -> List[UserProfile]:
    """
    List the signed-in user's active matches, retrying transient failures.

    Raises:
        AuthError: If there is no valid session.
        DatabaseError: If the match rows cannot be read after retries.
    """
    core = await get_core()
    current = await core.profiles.get_authenticated_user()
    return await with_retry(lambda: core.matches.get_user_matches(current.user_id))


async def reconcile_my_matches() -> int:
    """Create any match rows missing for the signed-in user's mutual likes."""
    core = await get_core()
    current = await core.profiles.get_authenticated_user()
    return await with_retry(lambda: core.likes.reconcile_matches(current.user_id))
