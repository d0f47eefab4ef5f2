"""Profile data access for the matchcore library."""

from datetime import date, datetime
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Sequence

import sentry_sdk
from pydantic import ValidationError as PydanticValidationError
from supabase import AsyncClient

from matchcore.database.client import USERS_TABLE, execute
from matchcore.models.user import Gender, UserPreferences, UserProfile, utcnow
from matchcore.utils.errors import AuthError, NotFoundError, ValidationError
from matchcore.utils.logging import get_logger

logger = get_logger(__name__)

CANDIDATE_COLUMNS = "id, full_name, username, gender, birthdate, bio, avatar_url, preferences, created_at, updated_at"
PROFILE_COLUMNS = "*"

_TEXT_FIELDS = ("full_name", "username", "email", "bio", "avatar_url")


class AuthenticatedUser(NamedTuple):
    """The user behind the current session."""

    user_id: str
    session: Any


def _parse_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def _parse_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value:
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


def _parse_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _parse_gender(value: Any, user_id: str) -> Gender:
    try:
        return Gender(value)
    except ValueError:
        if value is not None:
            logger.warning("Unknown gender in profile row, defaulting", user_id=user_id, gender=value)
        return Gender.OTHER


def _parse_preferences(value: Any, user_id: str) -> UserPreferences:
    if not isinstance(value, Mapping):
        return UserPreferences()
    try:
        return UserPreferences.model_validate(value)
    except (PydanticValidationError, ValidationError) as e:
        logger.warning("Malformed preferences in profile row, using defaults", user_id=user_id, error=str(e))
        return UserPreferences()


def transform_to_profile(raw: Mapping[str, Any], overrides: Optional[Dict[str, Any]] = None) -> UserProfile:
    """
    Convert a loosely-typed ``users`` row into a ``UserProfile``.

    This never raises. Missing or malformed fields fall back to defaults:
    empty strings for text (including ``email``), ``is_verified=True``,
    ``is_online=False``, ``last_active=False``, ``other`` for an unknown
    gender, default preferences, and the current time for timestamps.

    Args:
        raw (Mapping[str, Any]): Row as returned by the data source.
        overrides (Optional[Dict[str, Any]]): Field values applied last, unvalidated.

    Returns:
        UserProfile: The canonical profile.
    """
    user_id = str(raw.get("id") or "")
    now = utcnow()

    data: Dict[str, Any] = {"id": user_id}
    for field in _TEXT_FIELDS:
        value = raw.get(field)
        data[field] = value if isinstance(value, str) else ""

    last_active = raw.get("last_active")
    is_verified = raw.get("is_verified")
    is_online = raw.get("is_online")

    data.update(
        gender=_parse_gender(raw.get("gender"), user_id),
        birthdate=_parse_date(raw.get("birthdate")),
        preferences=_parse_preferences(raw.get("preferences"), user_id),
        location_lat=_parse_float(raw.get("location_lat")),
        location_lng=_parse_float(raw.get("location_lng")),
        last_active=last_active if isinstance(last_active, (bool, str)) else False,
        is_verified=is_verified if isinstance(is_verified, bool) else True,
        is_online=is_online if isinstance(is_online, bool) else False,
        created_at=_parse_datetime(raw.get("created_at")) or now,
        updated_at=_parse_datetime(raw.get("updated_at")) or now,
    )

    profile = UserProfile(**data)
    if overrides:
        profile = profile.model_copy(update=overrides)
    return profile


class ProfileRepository:
    """Reads user profiles and preferences from the ``users`` table."""

    def __init__(self, client: AsyncClient) -> None:
        self._client = client

    async def get_authenticated_user(self) -> AuthenticatedUser:
        """
        Resolve the user behind the current session.

        Returns:
            AuthenticatedUser: The user id and the auth provider's response.

        Raises:
            AuthError: If there is no valid session.
        """
        try:
            response = await self._client.auth.get_user()
        except Exception as e:
            logger.warning("Session lookup failed", error=str(e))
            raise AuthError("Not authenticated.", details={"error": str(e)}) from e

        user = getattr(response, "user", None)
        if user is None or not getattr(user, "id", None):
            raise AuthError("Not authenticated.")

        return AuthenticatedUser(user_id=str(user.id), session=response)

    async def get_preferences(self, user_id: str) -> UserPreferences:
        """
        Get a user's matching preferences.

        A user without stored preferences (no row, a null blob or a malformed
        blob) gets the defaults, which apply no gender filter.

        Raises:
            DatabaseError: If the read fails.
        """
        query = self._client.table(USERS_TABLE).select("preferences").eq("id", user_id).single()
        response = await execute(query, "Failed to get user preferences", allow_not_found=True, user_id=user_id)

        if response is None:
            logger.debug("No user row for preferences, using defaults", user_id=user_id)
            return UserPreferences()

        row = response.data or {}
        return _parse_preferences(row.get("preferences"), user_id)

    async def get_profile(self, user_id: str) -> UserProfile:
        """
        Get a single user's profile.

        Raises:
            NotFoundError: If the user does not exist.
            DatabaseError: If the read fails.
        """
        with sentry_sdk.start_span(op="profile.get", name=user_id):
            query = self._client.table(USERS_TABLE).select(PROFILE_COLUMNS).eq("id", user_id).single()
            response = await execute(query, "Failed to get user profile", allow_not_found=True, user_id=user_id)

            if response is None or not response.data:
                logger.warning("User not found", user_id=user_id)
                raise NotFoundError(f"User not found: {user_id}")

            return transform_to_profile(response.data)

    async def get_profiles(self, user_ids: Sequence[str]) -> Dict[str, UserProfile]:
        """
        Get several profiles in a single query.

        Args:
            user_ids (Sequence[str]): Ids to resolve; duplicates are collapsed.

        Returns:
            Dict[str, UserProfile]: Profiles keyed by id. Ids with no row are absent.

        Raises:
            DatabaseError: If the read fails.
        """
        unique_ids = list(dict.fromkeys(user_ids))
        if not unique_ids:
            return {}

        query = self._client.table(USERS_TABLE).select(PROFILE_COLUMNS).in_("id", unique_ids)
        response = await execute(query, "Failed to get user profiles", count=len(unique_ids))

        profiles = {}
        for row in response.data or []:
            profile = transform_to_profile(row)
            profiles[profile.id] = profile
        return profiles

    async def query_candidates(
        self,
        exclude_user_id: str,
        gender_filter: Sequence[Gender],
        limit: int,
        offset: int,
    ) -> List[UserProfile]:
        """
        Query one page of candidate profiles.

        The gender filter is applied in the query when non-empty. Results are
        ordered newest account first and never include ``exclude_user_id``.

        Raises:
            DatabaseError: If the read fails.
        """
        with sentry_sdk.start_span(op="profile.query_candidates", name=exclude_user_id) as span:
            query = (
                self._client.table(USERS_TABLE)
                .select(CANDIDATE_COLUMNS)
                .neq("id", exclude_user_id)
                .order("created_at", desc=True)
                .range(offset, offset + limit - 1)
            )

            if gender_filter:
                query = query.in_("gender", [Gender(g).value for g in gender_filter])

            response = await execute(query, "Failed to fetch potential matches", user_id=exclude_user_id)

            candidates = [transform_to_profile(row) for row in response.data or []]
            span.set_data("count", len(candidates))
            return candidates
