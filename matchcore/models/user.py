"""User profile models for the matchcore library."""

from datetime import date, datetime, timezone
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from matchcore.utils.errors import ValidationError


def utcnow() -> datetime:
    """Get the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def calculate_age(birthdate: date, today: Optional[date] = None) -> int:
    """
    Calculate age in whole years.

    Args:
        birthdate (date): Date of birth.
        today (Optional[date]): Reference date; defaults to the current UTC date.

    Returns:
        int: Age, one less when this year's birthday has not happened yet.
    """
    today = today or utcnow().date()
    age = today.year - birthdate.year
    if (today.month, today.day) < (birthdate.month, birthdate.day):
        age -= 1
    return age


class Gender(str, Enum):
    """
    Gender enumeration.

    Both ``UserProfile.gender`` and ``UserPreferences.gender_preference`` draw
    from this fixed set.
    """

    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class AgeRange(BaseModel):
    """Inclusive age bounds a user is interested in."""

    min: int = 18
    max: int = 100

    @model_validator(mode="after")
    def check_bounds(self) -> "AgeRange":
        """
        Validate the age bounds.

        Raises:
            ValidationError: If a bound is negative or min exceeds max.
        """
        if self.min < 0 or self.max < 0:
            raise ValidationError("Age bounds must be positive")
        if self.min > self.max:
            raise ValidationError("age_range.min must be less than or equal to age_range.max")
        return self


class UserPreferences(BaseModel):
    """
    User preferences model.

    An empty ``gender_preference`` means no gender filter is applied.
    """

    age_range: AgeRange = Field(default_factory=AgeRange)
    distance: int = 50  # in kilometers
    gender_preference: List[Gender] = Field(default_factory=list)

    @field_validator("gender_preference", mode="before")
    @classmethod
    def normalize_gender_preference(cls, v: object) -> object:
        """Treat a null preference as "no filter"."""
        if v is None:
            return []
        return v

    @field_validator("gender_preference")
    @classmethod
    def dedupe_gender_preference(cls, v: List[Gender]) -> List[Gender]:
        """Remove duplicates while preserving order."""
        unique: List[Gender] = []
        for gender in v:
            if gender not in unique:
                unique.append(gender)
        return unique

    @field_validator("distance")
    @classmethod
    def validate_distance(cls, v: int) -> int:
        if v < 0:
            raise ValidationError("Distance must not be negative")
        return v


class UserProfile(BaseModel):
    """
    User profile model.

    The canonical shape returned to UI callers for candidates and matches.
    """

    id: str
    full_name: str = ""
    username: str = ""
    email: str = ""
    gender: Gender = Gender.OTHER
    birthdate: Optional[date] = None
    bio: str = ""
    avatar_url: str = ""
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    location_lat: Optional[float] = None
    location_lng: Optional[float] = None
    last_active: Union[bool, str] = False
    is_verified: bool = True
    is_online: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def age(self) -> Optional[int]:
        """Age derived from ``birthdate``, or None when it is unknown."""
        if self.birthdate is None:
            return None
        return calculate_age(self.birthdate)
