from datetime import datetime
from typing import Any, FrozenSet, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .identifiers import PyObjectId
from .user import UserDetail, UserSummary

InteractionAction = Literal["like", "dislike", "superlike"]

ACTIONS: FrozenSet[str] = frozenset({"like", "dislike", "superlike"})
POSITIVE_ACTIONS: FrozenSet[str] = frozenset({"like", "superlike"})


class InteractionRequest(BaseModel):
    """Swipe payload. Fields are validated by the service so bad input maps to 400."""

    to: Optional[Any] = None
    action: Optional[Any] = None


class InteractionDocument(BaseModel):
    """One directional edge; at most one per (fromUserId, toUserId)."""

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    id: PyObjectId = Field(alias="_id")
    from_user_id: str = Field(alias="fromUserId")
    to_user_id: str = Field(alias="toUserId")
    action: InteractionAction
    created_at: datetime = Field(alias="createdAt")


class InteractionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    match: bool = False
    match_id: Optional[str] = Field(default=None, alias="matchId")
    user: Optional[UserDetail] = None


class InteractionRemovalResponse(BaseModel):
    ok: bool = True
    message: str = "Interaction removed successfully"


class LikedUserEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user: UserSummary
    action: InteractionAction
    liked_at: datetime = Field(alias="likedAt")


class DislikedUserEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user: UserSummary
    disliked_at: datetime = Field(alias="dislikedAt")


class LikedUsersResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    liked_users: List[LikedUserEntry] = Field(default_factory=list, alias="likedUsers")


class DislikedUsersResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    disliked_users: List[DislikedUserEntry] = Field(default_factory=list, alias="dislikedUsers")


__all__ = [
    "ACTIONS",
    "DislikedUserEntry",
    "DislikedUsersResponse",
    "InteractionAction",
    "InteractionDocument",
    "InteractionRemovalResponse",
    "InteractionRequest",
    "InteractionResponse",
    "LikedUserEntry",
    "LikedUsersResponse",
    "POSITIVE_ACTIONS",
]
