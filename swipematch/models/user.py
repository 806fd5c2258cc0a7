from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .identifiers import PyObjectId

MIN_AGE = 13
MAX_AGE = 120


def _lower_or_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip().lower()
    return text or None


class Photo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str = Field(min_length=1)
    public_id: Optional[str] = Field(default=None, alias="publicId")
    is_profile: bool = Field(default=False, alias="isProfile")


class Location(BaseModel):
    city: Optional[str] = None
    lat: Optional[float] = Field(default=None, ge=-90, le=90)
    lng: Optional[float] = Field(default=None, ge=-180, le=180)


class LookingFor(BaseModel):
    """Preference criteria a user declares for their own feed."""

    model_config = ConfigDict(populate_by_name=True)

    gender: str = "any"
    min_age: int = Field(default=18, alias="minAge", ge=MIN_AGE, le=MAX_AGE)
    max_age: int = Field(default=60, alias="maxAge", ge=MIN_AGE, le=MAX_AGE)

    @field_validator("gender", mode="before")
    @classmethod
    def _normalize_gender(cls, value):
        return _lower_or_none(value) or "any"

    @model_validator(mode="after")
    def _check_range(self) -> "LookingFor":
        if self.min_age > self.max_age:
            raise ValueError("lookingFor.minAge must not exceed lookingFor.maxAge")
        return self


class Lifestyle(BaseModel):
    drinking: Optional[str] = None
    smoking: Optional[str] = None
    eating: Optional[str] = None

    @field_validator("drinking", "smoking", "eating", mode="before")
    @classmethod
    def _normalize(cls, value):
        return _lower_or_none(value)


class Verification(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    phone_verified: bool = Field(default=True, alias="phoneVerified")


class Boosts(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Expiry of the visibility boost; written by the purchase flow
    visibility: Optional[datetime] = None
    super_likes: int = Field(default=0, alias="superLikes")


class UserDocument(BaseModel):
    """A user directory entry as stored in MongoDB."""

    model_config = ConfigDict(populate_by_name=True, extra="allow", arbitrary_types_allowed=True)

    id: PyObjectId = Field(alias="_id")
    user_id: str = Field(alias="userId")
    name: str = ""
    phone: Optional[str] = None
    gender: Optional[str] = None
    age: Optional[int] = None
    bio: str = ""
    interests: List[str] = Field(default_factory=list)
    photos: List[Photo] = Field(default_factory=list)
    location: Location = Field(default_factory=Location)
    looking_for: LookingFor = Field(default_factory=LookingFor, alias="lookingFor")
    relationship_status: Optional[str] = Field(default=None, alias="relationshipStatus")
    education: Optional[str] = None
    profession: Optional[str] = None
    lifestyle: Lifestyle = Field(default_factory=Lifestyle)
    verification: Verification = Field(default_factory=Verification)
    boosts: Boosts = Field(default_factory=Boosts)
    last_active_at: Optional[datetime] = Field(default=None, alias="lastActiveAt")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    def primary_photo_url(self) -> Optional[str]:
        for photo in self.photos:
            if photo.is_profile:
                return photo.url
        return self.photos[0].url if self.photos else None


class UserProfileUpsert(BaseModel):
    """Mutable profile fields. Omitted fields are left untouched."""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(default=None, max_length=80)
    phone: Optional[str] = Field(default=None, max_length=32)
    gender: Optional[str] = None
    age: Optional[int] = Field(default=None, ge=MIN_AGE, le=MAX_AGE)
    bio: Optional[str] = Field(default=None, max_length=600)
    interests: Optional[List[str]] = None
    photos: Optional[List[Photo]] = None
    location: Optional[Location] = None
    looking_for: Optional[LookingFor] = Field(default=None, alias="lookingFor")
    relationship_status: Optional[str] = Field(default=None, alias="relationshipStatus")
    education: Optional[str] = Field(default=None, max_length=120)
    profession: Optional[str] = Field(default=None, max_length=120)
    lifestyle: Optional[Lifestyle] = None

    @field_validator("gender", "relationship_status", mode="before")
    @classmethod
    def _normalize_enums(cls, value):
        return _lower_or_none(value)


class UserSummary(BaseModel):
    """Minimal public card shown in liked/disliked lists."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId")
    name: str = ""
    age: Optional[int] = None
    photos: List[Photo] = Field(default_factory=list)
    bio: str = ""
    interests: List[str] = Field(default_factory=list)
    location: Location = Field(default_factory=Location)


class UserDetail(UserSummary):
    """Full public profile. ``phone`` is masked unless the viewer may see it."""

    gender: Optional[str] = None
    relationship_status: Optional[str] = Field(default=None, alias="relationshipStatus")
    education: Optional[str] = None
    profession: Optional[str] = None
    lifestyle: Lifestyle = Field(default_factory=Lifestyle)
    is_matched: bool = Field(default=False, alias="isMatched")
    phone: Optional[str] = None
    phone_verified: bool = Field(default=False, alias="phoneVerified")


class OwnProfile(UserDetail):
    looking_for: LookingFor = Field(default_factory=LookingFor, alias="lookingFor")
    boosts: Boosts = Field(default_factory=Boosts)
    last_active_at: Optional[datetime] = Field(default=None, alias="lastActiveAt")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")


class UserDetailResponse(BaseModel):
    ok: bool = True
    user: UserDetail


class OwnProfileResponse(BaseModel):
    ok: bool = True
    user: OwnProfile


__all__ = [
    "Boosts",
    "Lifestyle",
    "Location",
    "LookingFor",
    "MAX_AGE",
    "MIN_AGE",
    "OwnProfile",
    "OwnProfileResponse",
    "Photo",
    "UserDetail",
    "UserDetailResponse",
    "UserDocument",
    "UserProfileUpsert",
    "UserSummary",
]
