from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .user import UserDetail


class FeedFilters(BaseModel):
    """Optional, AND-combined candidate filters. ``"any"`` means unset."""

    model_config = ConfigDict(populate_by_name=True)

    limit: Optional[int] = None
    skip: Optional[int] = None
    min_age: Optional[int] = Field(default=None, alias="minAge")
    max_age: Optional[int] = Field(default=None, alias="maxAge")
    city: Optional[str] = None
    relationship_status: Optional[str] = Field(default=None, alias="relationshipStatus")
    gender: Optional[str] = None
    verified_only: bool = Field(default=False, alias="verifiedOnly")
    has_photos: bool = Field(default=False, alias="hasPhotos")
    education: Optional[str] = None
    profession: Optional[str] = None
    drinking: Optional[str] = None
    smoking: Optional[str] = None
    eating: Optional[str] = None


class FeedCandidate(UserDetail):
    boosted: bool = False


class FeedResponse(BaseModel):
    ok: bool = True
    results: List[FeedCandidate] = Field(default_factory=list)


class AgeRange(BaseModel):
    min: int = 18
    max: int = 80


class FilterOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    relationship_status: List[str] = Field(alias="relationshipStatus")
    gender: List[str]
    age_range: AgeRange = Field(default_factory=AgeRange, alias="ageRange")
    cities: List[str] = Field(default_factory=list)


class FilterOptionsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    filter_options: FilterOptions = Field(alias="filterOptions")


__all__ = [
    "AgeRange",
    "FeedCandidate",
    "FeedFilters",
    "FeedResponse",
    "FilterOptions",
    "FilterOptionsResponse",
]
