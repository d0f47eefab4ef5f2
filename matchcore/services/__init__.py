"""Services package for the matchcore library."""

from dataclasses import dataclass
from typing import Optional

from supabase import AsyncClient

from matchcore.config import Settings, get_settings
from matchcore.services.like_service import LikeService
from matchcore.services.match_service import MatchService
from matchcore.services.profile_repository import AuthenticatedUser, ProfileRepository, transform_to_profile
from matchcore.utils.cache import Cache, create_cache


@dataclass
class MatchCore:
    """The services of one deployment, wired to a shared client and cache."""

    profiles: ProfileRepository
    likes: LikeService
    matches: MatchService
    cache: Cache

    @classmethod
    def build(
        cls,
        client: AsyncClient,
        cache: Optional[Cache] = None,
        config: Optional[Settings] = None,
    ) -> "MatchCore":
        """
        Wire the services around a Supabase client.

        Args:
            client (AsyncClient): Data source and auth provider.
            cache (Optional[Cache]): Cache to share; defaults to the backend selected by configuration.
            config (Optional[Settings]): Settings; defaults to the global settings.

        Returns:
            MatchCore: The wired services.
        """
        config = config or get_settings()
        cache = cache if cache is not None else create_cache(config)
        profiles = ProfileRepository(client)
        return cls(
            profiles=profiles,
            likes=LikeService(client, profiles, cache),
            matches=MatchService(client, profiles, cache, config),
            cache=cache,
        )


__all__ = [
    "AuthenticatedUser",
    "LikeService",
    "MatchCore",
    "MatchService",
    "ProfileRepository",
    "transform_to_profile",
]
