"""Like and match models for the matchcore library."""

from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from matchcore.models.user import UserProfile, utcnow


def canonical_pair(user_a: str, user_b: str) -> Tuple[str, str]:
    """
    Order two user ids into the canonical (user1_id, user2_id) pair.

    The smaller id (lexicographically) always comes first, so both members
    of a match address the same row.
    """
    return (user_a, user_b) if user_a < user_b else (user_b, user_a)


class Like(BaseModel):
    """Represents a 'Like' from one user to another. Likes are never updated."""

    from_user_id: str = Field(..., description="ID of the user performing the like action.")
    to_user_id: str = Field(..., description="ID of the user being liked.")
    created_at: datetime = Field(default_factory=utcnow, description="Timestamp when the like occurred.")

    @model_validator(mode="before")
    @classmethod
    def check_self_like(cls, values: Dict[str, Any]) -> Dict[str, Any]:
        from_user_id = values.get("from_user_id")
        to_user_id = values.get("to_user_id")
        if from_user_id and to_user_id and from_user_id == to_user_id:
            raise ValueError("A user cannot like themselves.")
        return values

    @field_validator("from_user_id", "to_user_id")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("User IDs cannot be empty")
        return v

    model_config = ConfigDict(frozen=True, extra="ignore")


class Match(BaseModel):
    """
    Match model.

    One row per unordered pair of users, stored with ``user1_id < user2_id``.
    ``is_active`` is the only field that changes after creation.
    """

    id: Optional[str] = None
    user1_id: str
    user2_id: str
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def check_canonical_order(self) -> "Match":
        if self.user1_id >= self.user2_id:
            raise ValueError("Match pair must be stored with user1_id < user2_id")
        return self

    @classmethod
    def for_pair(cls, user_a: str, user_b: str) -> "Match":
        """Build a new active match for two users in canonical order."""
        user1_id, user2_id = canonical_pair(user_a, user_b)
        return cls(user1_id=user1_id, user2_id=user2_id)

    def other_user_id(self, user_id: str) -> str:
        """Return the id of the member of this match who is not ``user_id``."""
        return self.user2_id if user_id == self.user1_id else self.user1_id

    model_config = ConfigDict(extra="ignore")


class MatchResult(BaseModel):
    """
    Outcome of a like action.

    Dumped with camelCase aliases (``isMatch``, ``matchedUser``, ``alreadyLiked``)
    for UI callers.
    """

    success: bool
    is_match: bool = Field(default=False, serialization_alias="isMatch")
    matched_user: Optional[UserProfile] = Field(default=None, serialization_alias="matchedUser")
    already_liked: Optional[bool] = Field(default=None, serialization_alias="alreadyLiked")
    error: Optional[str] = None

    def to_response(self) -> Dict[str, Any]:
        """Serialize for the UI, omitting fields that are not set."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
