"""Candidate and match list service for the matchcore library."""

from typing import Dict, List, Optional

import sentry_sdk
from pydantic import TypeAdapter
from supabase import AsyncClient

from matchcore.config import Settings, settings
from matchcore.database.client import MATCHES_TABLE, execute
from matchcore.models.match import Match
from matchcore.models.user import UserProfile
from matchcore.services.like_service import USER_MATCHES_DISCRIMINATOR
from matchcore.services.profile_repository import ProfileRepository
from matchcore.utils.cache import Cache
from matchcore.utils.errors import MatchCoreError, ValidationError
from matchcore.utils.logging import get_logger

logger = get_logger(__name__)

# Cached values come back as models from MemoryCache and as plain JSON from RedisCache.
_PROFILE_LIST = TypeAdapter(List[UserProfile])

CANDIDATES_DISCRIMINATOR = "matches:{limit}:{offset}"


class MatchService:
    """Serves candidate pages and a user's active matches, both cached per user."""

    def __init__(
        self,
        client: AsyncClient,
        profiles: ProfileRepository,
        cache: Cache,
        config: Optional[Settings] = None,
    ) -> None:
        self._client = client
        self._profiles = profiles
        self._cache = cache
        self._settings = config or settings

    def _cached_profiles(self, key: str) -> Optional[List[UserProfile]]:
        cached = self._cache.get(key)
        if cached is None:
            return None
        try:
            return _PROFILE_LIST.validate_python(cached)
        except Exception as e:
            logger.error("Failed to parse cached profiles", key=key, error=str(e))
            self._cache.delete(key)
            return None

    async def get_potential_matches(
        self, user_id: str, limit: Optional[int] = None, offset: int = 0
    ) -> List[UserProfile]:
        """
        Get a page of candidate profiles for a user.

        Candidates are filtered by the user's gender preference in the query
        and ordered newest account first. Users already liked or matched are
        not excluded.

        Args:
            user_id (str): The user browsing candidates; never part of the result.
            limit (Optional[int]): Page size. Defaults to ``CANDIDATE_PAGE_SIZE``.
            offset (int, optional): Page offset. Defaults to 0.

        Returns:
            List[UserProfile]: Candidate profiles.

        Raises:
            ValidationError: If limit or offset is out of range.
            DatabaseError: If reading preferences or candidates fails.
        """
        if limit is None:
            limit = self._settings.CANDIDATE_PAGE_SIZE
        if limit <= 0 or offset < 0:
            raise ValidationError("Invalid page", details={"limit": limit, "offset": offset})

        with sentry_sdk.start_span(op="match.get_potential", name=user_id) as span:
            cache_key = self._cache.user_key(user_id, CANDIDATES_DISCRIMINATOR.format(limit=limit, offset=offset))
            cached = self._cached_profiles(cache_key)
            if cached is not None:
                logger.debug("Potential matches retrieved from cache", user_id=user_id, count=len(cached))
                span.set_data("source", "cache")
                span.set_data("count", len(cached))
                return cached

            preferences = await self._profiles.get_preferences(user_id)
            candidates = await self._profiles.query_candidates(
                exclude_user_id=user_id,
                gender_filter=preferences.gender_preference,
                limit=limit,
                offset=offset,
            )

            self._cache.set(cache_key, candidates, self._settings.CANDIDATE_CACHE_TTL_MS)

            logger.info("Potential matches retrieved", user_id=user_id, count=len(candidates))
            span.set_data("source", "database")
            span.set_data("count", len(candidates))
            return candidates

    async def get_user_matches(self, user_id: str) -> List[UserProfile]:
        """
        Get the profiles of everyone a user is actively matched with.

        Each profile's ``created_at`` and ``updated_at`` carry the match's
        creation time. A counterpart whose profile cannot be loaded is left
        out instead of failing the whole list.

        Args:
            user_id (str): The user whose matches are listed.

        Returns:
            List[UserProfile]: Counterpart profiles, most recent match first.

        Raises:
            DatabaseError: If reading the match rows fails.
        """
        with sentry_sdk.start_span(op="match.get_user_matches", name=user_id) as span:
            cache_key = self._cache.user_key(user_id, USER_MATCHES_DISCRIMINATOR)
            cached = self._cached_profiles(cache_key)
            if cached is not None:
                logger.debug("User matches retrieved from cache", user_id=user_id, count=len(cached))
                span.set_data("source", "cache")
                return cached

            query = (
                self._client.table(MATCHES_TABLE)
                .select("id, user1_id, user2_id, is_active, created_at")
                .eq("is_active", True)
                .or_(f"user1_id.eq.{user_id},user2_id.eq.{user_id}")
                .order("created_at", desc=True)
            )
            response = await execute(query, "Failed to fetch matches", user_id=user_id)

            matches = []
            for row in response.data or []:
                try:
                    matches.append(Match.model_validate(row))
                except Exception as e:
                    logger.warning("Skipping malformed match row", user_id=user_id, row=row, error=str(e))

            counterparts = await self._resolve_counterparts(user_id, [m.other_user_id(user_id) for m in matches])

            profiles = []
            for match in matches:
                profile = counterparts.get(match.other_user_id(user_id))
                if profile is None:
                    logger.warning("Match counterpart unavailable", user_id=user_id, match_id=match.id)
                    continue
                matched_since = {"created_at": match.created_at, "updated_at": match.created_at}
                profiles.append(profile.model_copy(update=matched_since))

            self._cache.set(cache_key, profiles, self._settings.MATCHES_CACHE_TTL_MS)

            logger.debug("User matches retrieved", user_id=user_id, count=len(profiles))
            span.set_data("source", "database")
            span.set_data("count", len(profiles))
            return profiles

    async def _resolve_counterparts(self, user_id: str, other_ids: List[str]) -> Dict[str, UserProfile]:
        """
        Load counterpart profiles with one batched query.

        When the batched query fails, each profile is loaded on its own and
        failures drop only that profile.
        """
        if not other_ids:
            return {}

        try:
            return await self._profiles.get_profiles(other_ids)
        except MatchCoreError as e:
            logger.warning("Batched profile lookup failed, resolving one by one", user_id=user_id, error=str(e))

        resolved: Dict[str, UserProfile] = {}
        for other_id in dict.fromkeys(other_ids):
            try:
                resolved[other_id] = await self._profiles.get_profile(other_id)
            except MatchCoreError as e:
                logger.warning("Failed to resolve match counterpart", user_id=user_id, other_id=other_id, error=str(e))
        return resolved
