"""Like and match service for the matchcore library."""

from typing import Set

import sentry_sdk
from postgrest import APIError
from supabase import AsyncClient

from matchcore.database.client import LIKES_TABLE, MATCHES_TABLE, execute, is_duplicate_key
from matchcore.models.match import Like, Match, MatchResult, canonical_pair
from matchcore.services.profile_repository import ProfileRepository
from matchcore.utils.cache import Cache
from matchcore.utils.errors import DatabaseError, ValidationError
from matchcore.utils.logging import get_logger, log_error

logger = get_logger(__name__)

# Discriminator of the cached match list, shared with MatchService.
USER_MATCHES_DISCRIMINATOR = "user-matches"

MATCH_CONFLICT_COLUMNS = "user1_id,user2_id"


class LikeService:
    """
    Records likes and materializes matches.

    Likes are an append-only edge log. A match row is upserted the moment a
    like finds its reverse edge. There is no locking across requests: two
    opposite likes racing each other may both attempt the upsert, which is
    keyed on the canonical pair and therefore creates a single row.
    """

    def __init__(self, client: AsyncClient, profiles: ProfileRepository, cache: Cache) -> None:
        self._client = client
        self._profiles = profiles
        self._cache = cache

    async def like_user(self, from_user_id: str, to_user_id: str) -> MatchResult:
        """
        Record that ``from_user_id`` likes ``to_user_id``.

        Steps run strictly in order: insert the like, look for the reverse
        like, and on a mutual like upsert the match row and load the
        counterpart's profile. Calling this twice for the same pair stores
        one like and reports ``already_liked`` the second time. A repeated
        call still upserts the match when the reverse like exists, so a retry
        after a failure between the insert and the upsert loses nothing.

        Args:
            from_user_id (str): The user performing the like.
            to_user_id (str): The user being liked.

        Returns:
            MatchResult: ``already_liked``, plain like, or match with ``matched_user``.

        Raises:
            ValidationError: If a user tries to like themselves.
            DatabaseError: If recording the like or a required read fails.
        """
        if from_user_id == to_user_id:
            raise ValidationError("You cannot like yourself.", details={"user_id": from_user_id})

        with sentry_sdk.start_span(op="like.create", name=f"{from_user_id} -> {to_user_id}") as span:
            like = Like(from_user_id=from_user_id, to_user_id=to_user_id)

            try:
                await (
                    self._client.table(LIKES_TABLE)
                    .insert(like.model_dump(mode="json", exclude={"created_at"}))
                    .execute()
                )
            except APIError as e:
                if is_duplicate_key(e):
                    logger.info("Like already recorded", from_user_id=from_user_id, to_user_id=to_user_id)
                    span.set_data("outcome", "already_liked")
                    # An earlier attempt may have stopped before the upsert.
                    if await self.has_liked(to_user_id, from_user_id):
                        await self._upsert_match(from_user_id, to_user_id)
                    return MatchResult(success=True, is_match=False, already_liked=True)
                logger.error("Failed to record like", from_user_id=from_user_id, to_user_id=to_user_id, error=str(e))
                raise DatabaseError(
                    "Failed to record like",
                    details={"error": str(e), "code": e.code, "from_user_id": from_user_id, "to_user_id": to_user_id},
                ) from e
            except Exception as e:
                logger.error("Failed to record like", from_user_id=from_user_id, to_user_id=to_user_id, error=str(e))
                raise DatabaseError(
                    "Failed to record like",
                    details={"error": str(e), "from_user_id": from_user_id, "to_user_id": to_user_id},
                ) from e

            if not await self.has_liked(to_user_id, from_user_id):
                logger.info("Like recorded", from_user_id=from_user_id, to_user_id=to_user_id)
                span.set_data("outcome", "liked")
                return MatchResult(success=True, is_match=False)

            await self._upsert_match(from_user_id, to_user_id)

            matched_user = await self._profiles.get_profile(to_user_id)
            logger.info("Mutual like, match created", from_user_id=from_user_id, to_user_id=to_user_id)
            span.set_data("outcome", "matched")
            return MatchResult(success=True, is_match=True, matched_user=matched_user)

    async def has_liked(self, from_user_id: str, to_user_id: str) -> bool:
        """
        Check whether a directed like exists.

        Raises:
            DatabaseError: If the read fails.
        """
        query = (
            self._client.table(LIKES_TABLE)
            .select("from_user_id")
            .eq("from_user_id", from_user_id)
            .eq("to_user_id", to_user_id)
            .single()
        )
        response = await execute(
            query,
            "Failed to check like",
            allow_not_found=True,
            from_user_id=from_user_id,
            to_user_id=to_user_id,
        )
        return response is not None

    async def reconcile_matches(self, user_id: str) -> int:
        """
        Create match rows that are missing for mutual likes.

        A match upsert that fails after a like is only logged, so two users
        can like each other without a match row. This finds such pairs for
        ``user_id`` and upserts the missing rows.

        Args:
            user_id (str): User whose likes are checked.

        Returns:
            int: Number of match rows created.

        Raises:
            DatabaseError: If reading likes or matches fails.
        """
        with sentry_sdk.start_span(op="match.reconcile", name=user_id) as span:
            outgoing = await execute(
                self._client.table(LIKES_TABLE).select("to_user_id").eq("from_user_id", user_id),
                "Failed to get likes",
                user_id=user_id,
            )
            liked_ids = {row["to_user_id"] for row in outgoing.data or []}
            if not liked_ids:
                return 0

            incoming = await execute(
                self._client.table(LIKES_TABLE)
                .select("from_user_id")
                .eq("to_user_id", user_id)
                .in_("from_user_id", sorted(liked_ids)),
                "Failed to get likes",
                user_id=user_id,
            )
            mutual_ids = {row["from_user_id"] for row in incoming.data or []}
            if not mutual_ids:
                return 0

            existing = await execute(
                self._client.table(MATCHES_TABLE)
                .select("user1_id, user2_id")
                .or_(f"user1_id.eq.{user_id},user2_id.eq.{user_id}"),
                "Failed to get matches",
                user_id=user_id,
            )
            matched_ids: Set[str] = {
                row["user2_id"] if row["user1_id"] == user_id else row["user1_id"] for row in existing.data or []
            }

            repaired = 0
            for other_id in sorted(mutual_ids - matched_ids):
                if await self._upsert_match(user_id, other_id):
                    repaired += 1

            if repaired:
                logger.info("Missing matches reconciled", user_id=user_id, count=repaired)
            span.set_data("repaired", repaired)
            return repaired

    async def _upsert_match(self, user_a: str, user_b: str) -> bool:
        """
        Upsert the canonical match row for a pair.

        Failures are logged and swallowed: the like that triggered this is
        still valid and ``reconcile_matches`` can recreate the row later.

        Returns:
            bool: True if the upsert succeeded.
        """
        match = Match.for_pair(user_a, user_b)
        try:
            await (
                self._client.table(MATCHES_TABLE)
                .upsert(
                    match.model_dump(mode="json", include={"user1_id", "user2_id", "is_active"}),
                    on_conflict=MATCH_CONFLICT_COLUMNS,
                    ignore_duplicates=True,
                )
                .execute()
            )
        except Exception as e:
            log_error(
                logger,
                e,
                "Failed to upsert match, like kept",
                {"user1_id": match.user1_id, "user2_id": match.user2_id},
            )
            return False

        for user_id in canonical_pair(user_a, user_b):
            self._cache.delete(self._cache.user_key(user_id, USER_MATCHES_DISCRIMINATOR))
        return True
