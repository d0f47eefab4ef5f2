"""Models package for the matchcore library."""

from matchcore.models.match import Like, Match, MatchResult, canonical_pair
from matchcore.models.user import AgeRange, Gender, UserPreferences, UserProfile, calculate_age

__all__ = [
    "AgeRange",
    "Gender",
    "Like",
    "Match",
    "MatchResult",
    "UserPreferences",
    "UserProfile",
    "calculate_age",
    "canonical_pair",
]
