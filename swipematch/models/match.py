from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .identifiers import PyObjectId
from .user import UserDetail


class MatchDocument(BaseModel):
    """Mutual match between exactly two users, unique by ``usersKey``."""

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    id: PyObjectId = Field(alias="_id")
    users: List[str]
    users_key: str = Field(alias="usersKey")
    created_at: datetime = Field(alias="createdAt")
    last_message_at: Optional[datetime] = Field(default=None, alias="lastMessageAt")

    @field_validator("users")
    @classmethod
    def _exactly_two(cls, value: List[str]) -> List[str]:
        if len(value) != 2 or value[0] == value[1]:
            raise ValueError("matches must have exactly 2 distinct users")
        return value

    def counterpart_of(self, user_id: str) -> str:
        first, second = self.users
        return second if first == user_id else first

    def has_member(self, user_id: str) -> bool:
        return user_id in self.users


class MatchSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    match_id: str = Field(alias="matchId")
    user: Optional[UserDetail] = None
    created_at: datetime = Field(alias="createdAt")
    last_message_at: Optional[datetime] = Field(default=None, alias="lastMessageAt")


class MatchesResponse(BaseModel):
    ok: bool = True
    matches: List[MatchSummary] = Field(default_factory=list)


class MatchResponse(BaseModel):
    ok: bool = True
    match: MatchSummary


__all__ = ["MatchDocument", "MatchResponse", "MatchSummary", "MatchesResponse"]
