from __future__ import annotations

from typing import Any, Dict, Optional

from ..cache import cache as local_cache
from ..config import get_settings
from ..db import get_db
from ..models.user import (
    OwnProfile,
    UserDetail,
    UserDocument,
    UserProfileUpsert,
    UserSummary,
)
from ..repositories.exceptions import NotFoundRepositoryError
from ..repositories.match import MatchRepository
from ..repositories.user import UserRepository
from ..utils.pairs import users_key
from ..utils.phone import phone_for_viewer
from ..utils.timeutil import Clock, utcnow

FILTER_OPTIONS_CACHE_PREFIX = "feed:filters"


def _clean_str(value: Any, max_len: Optional[int] = None) -> Optional[str]:
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if max_len is not None and len(text) > max_len:
            text = text[:max_len]
        return text
    return None


def _clean_str_list(raw: Any, limit: int = 20) -> list[str]:
    items: list[str] = []
    if isinstance(raw, (list, tuple)):
        for entry in raw:
            cleaned = _clean_str(entry, max_len=40)
            if not cleaned or cleaned in items:
                continue
            items.append(cleaned)
            if len(items) >= limit:
                break
    return items


def to_summary(doc: UserDocument) -> UserSummary:
    return UserSummary(
        user_id=doc.user_id,
        name=doc.name,
        age=doc.age,
        photos=doc.photos,
        bio=doc.bio,
        interests=doc.interests,
        location=doc.location,
    )


def detail_fields(doc: UserDocument, *, revealed: bool, is_matched: bool) -> Dict[str, Any]:
    """Keyword arguments for ``UserDetail`` and subclasses, phone masked unless ``revealed``."""

    settings = get_settings()
    return {
        **to_summary(doc).model_dump(),
        "gender": doc.gender,
        "relationship_status": doc.relationship_status,
        "education": doc.education,
        "profession": doc.profession,
        "lifestyle": doc.lifestyle,
        "is_matched": is_matched,
        "phone": phone_for_viewer(
            doc.phone,
            revealed=revealed,
            visible=settings.phone_visible_prefix,
            mask=settings.phone_mask,
        ),
        "phone_verified": doc.verification.phone_verified,
    }


def to_detail(doc: UserDocument, *, is_matched: bool) -> UserDetail:
    return UserDetail(**detail_fields(doc, revealed=is_matched, is_matched=is_matched))


class UserService:
    """Profile reads and writes for the user directory."""

    def __init__(
        self,
        users: UserRepository,
        matches: MatchRepository,
        *,
        clock: Clock = utcnow,
    ) -> None:
        self._users = users
        self._matches = matches
        self._clock = clock

    async def get_me(self, user_id: str) -> OwnProfile:
        doc = await self._users.get_by_user_id(user_id)
        if not doc:
            raise NotFoundRepositoryError("user not found")
        return self._own_profile(doc)

    async def get_detail(self, viewer_id: str, target_id: str) -> UserDetail:
        """Another user's profile. Contact info is revealed only to self or a matched viewer."""

        target = (target_id or "").strip()
        doc = await self._users.get_by_user_id(target) if target else None
        if not doc:
            raise NotFoundRepositoryError("user not found")
        if doc.user_id == viewer_id:
            return UserDetail(**detail_fields(doc, revealed=True, is_matched=False))
        matched = await self._matches.find_by_key(users_key(viewer_id, doc.user_id)) is not None
        return to_detail(doc, is_matched=matched)

    async def upsert_profile(self, user_id: str, patch: UserProfileUpsert) -> OwnProfile:
        updates = self._build_updates(patch)
        doc = await self._users.upsert_profile(user_id=user_id, updates=updates, now=self._clock())
        if "location" in updates:
            await local_cache.delete_prefix(FILTER_OPTIONS_CACHE_PREFIX)
        return self._own_profile(doc)

    @staticmethod
    def _build_updates(patch: UserProfileUpsert) -> Dict[str, Any]:
        updates: Dict[str, Any] = {}
        fields = patch.model_dump(exclude_unset=True, by_alias=True)

        for key in ("name", "phone", "bio", "education", "profession"):
            if key in fields:
                updates[key] = _clean_str(fields[key]) or ""
        for key in ("gender", "relationshipStatus", "age"):
            if key in fields:
                updates[key] = fields[key]
        if "interests" in fields:
            updates["interests"] = _clean_str_list(fields["interests"])
        if patch.photos is not None:
            updates["photos"] = [photo.model_dump(by_alias=True) for photo in patch.photos]
        if patch.location is not None:
            location = patch.location.model_dump()
            location["city"] = _clean_str(location.get("city"), max_len=80) or ""
            updates["location"] = location
        if patch.looking_for is not None:
            updates["lookingFor"] = patch.looking_for.model_dump(by_alias=True)
        if patch.lifestyle is not None:
            updates["lifestyle"] = patch.lifestyle.model_dump()
        return updates

    @staticmethod
    def _own_profile(doc: UserDocument) -> OwnProfile:
        return OwnProfile(
            **detail_fields(doc, revealed=True, is_matched=False),
            looking_for=doc.looking_for,
            boosts=doc.boosts,
            last_active_at=doc.last_active_at,
            created_at=doc.created_at,
        )


def get_user_service() -> UserService:
    db = get_db()
    return UserService(UserRepository(db), MatchRepository(db))


__all__ = [
    "FILTER_OPTIONS_CACHE_PREFIX",
    "UserService",
    "detail_fields",
    "get_user_service",
    "to_detail",
    "to_summary",
]
