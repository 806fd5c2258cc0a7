"""Candidate feed: preference filters, interaction-based exclusion, boost-first ranking."""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from ..cache import cache as local_cache
from ..config import Settings, get_settings
from ..db import get_db
from ..models.feed import AgeRange, FeedCandidate, FeedFilters, FilterOptions
from ..repositories.interaction import InteractionRepository
from ..repositories.match import MatchRepository
from ..repositories.user import UserRepository
from ..utils.pairs import users_key
from ..utils.timeutil import Clock, utcnow
from .user_service import FILTER_OPTIONS_CACHE_PREFIX, detail_fields

ANY = "any"
BINARY_GENDERS = {"male": "female", "female": "male"}

RELATIONSHIP_STATUS_OPTIONS = ["single", "married", "divorced", "widowed", "complicated"]
GENDER_OPTIONS = ["male", "female", "other"]
POPULAR_CITIES_LIMIT = 20


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _specified(value: Any) -> Optional[str]:
    """The filter value, or None when unset or ``"any"``."""
    text = _clean(value)
    if text is None or text.lower() == ANY:
        return None
    return text


def resolve_gender_filter(requested: Optional[str], requester_gender: Optional[str]) -> Optional[str]:
    """An explicit gender wins; otherwise binary-gendered requesters see the opposite gender."""

    explicit = _specified(requested)
    if explicit:
        return explicit.lower()
    own = (_clean(requester_gender) or "").lower()
    return BINARY_GENDERS.get(own)


def clamp_page(filters: FeedFilters, settings: Settings) -> Tuple[int, int]:
    limit = filters.limit if filters.limit and filters.limit > 0 else settings.feed_default_limit
    limit = max(1, min(limit, settings.feed_max_limit))
    skip = max(0, filters.skip or 0)
    return skip, limit


def build_candidate_query(
    requester_id: str,
    filters: FeedFilters,
    *,
    gender: Optional[str],
    excluded_ids: Iterable[str],
) -> Dict[str, Any]:
    user_id_clause: Dict[str, Any] = {"$ne": requester_id}
    excluded = sorted({uid for uid in excluded_ids if uid and uid != requester_id})
    if excluded:
        user_id_clause["$nin"] = excluded
    query: Dict[str, Any] = {"userId": user_id_clause}

    age: Dict[str, int] = {}
    if filters.min_age is not None:
        age["$gte"] = filters.min_age
    if filters.max_age is not None:
        age["$lte"] = filters.max_age
    if age:
        query["age"] = age

    city = _clean(filters.city)
    if city:
        query["location.city"] = re.compile("^" + re.escape(city), re.IGNORECASE)

    relationship_status = _specified(filters.relationship_status)
    if relationship_status:
        query["relationshipStatus"] = relationship_status.lower()

    if gender:
        query["gender"] = gender

    if filters.verified_only:
        query["verification.phoneVerified"] = True
    if filters.has_photos:
        query["photos.0"] = {"$exists": True}

    for field, value in (("education", filters.education), ("profession", filters.profession)):
        text = _clean(value)
        if text:
            query[field] = re.compile(re.escape(text), re.IGNORECASE)

    for field in ("drinking", "smoking", "eating"):
        value = _specified(getattr(filters, field))
        if value:
            query[f"lifestyle.{field}"] = value.lower()

    return query


class FeedService:
    def __init__(
        self,
        users: UserRepository,
        interactions: InteractionRepository,
        matches: MatchRepository,
        *,
        settings: Optional[Settings] = None,
        clock: Clock = utcnow,
    ) -> None:
        self._users = users
        self._interactions = interactions
        self._matches = matches
        self._settings = settings or get_settings()
        self._clock = clock

    async def exclusion_set(self, requester_id: str) -> Set[str]:
        """Liked/superliked targets forever, plus only the most recent window of dislikes."""

        liked = await self._interactions.target_ids(requester_id, ("like", "superlike"))
        recent_dislikes = await self._interactions.recent_target_ids(
            requester_id,
            "dislike",
            self._settings.dislike_exclusion_window,
        )
        return liked.union(recent_dislikes)

    async def get_feed(self, requester_id: str, filters: FeedFilters) -> List[FeedCandidate]:
        requester = await self._users.get_by_user_id(requester_id)
        gender = resolve_gender_filter(filters.gender, requester.gender if requester else None)
        excluded = await self.exclusion_set(requester_id)
        query = build_candidate_query(requester_id, filters, gender=gender, excluded_ids=excluded)
        skip, limit = clamp_page(filters, self._settings)

        rows = await self._users.find_candidates(query, now=self._clock(), skip=skip, limit=limit)
        keys = {doc.user_id: users_key(requester_id, doc.user_id) for doc, _ in rows}
        matched_keys = await self._matches.existing_keys(keys.values())

        results: List[FeedCandidate] = []
        for doc, boosted in rows:
            is_matched = keys[doc.user_id] in matched_keys
            results.append(
                FeedCandidate(
                    **detail_fields(doc, revealed=is_matched, is_matched=is_matched),
                    boosted=boosted,
                )
            )
        return results

    async def filter_options(self) -> FilterOptions:
        async def _load() -> FilterOptions:
            cities = await self._users.popular_cities(POPULAR_CITIES_LIMIT)
            return FilterOptions(
                relationship_status=list(RELATIONSHIP_STATUS_OPTIONS),
                gender=list(GENDER_OPTIONS),
                age_range=AgeRange(),
                cities=cities,
            )

        return await local_cache.get_or_set(
            f"{FILTER_OPTIONS_CACHE_PREFIX}:options",
            _load,
            self._settings.filter_options_ttl_seconds,
        )


def get_feed_service() -> FeedService:
    db = get_db()
    return FeedService(UserRepository(db), InteractionRepository(db), MatchRepository(db))


__all__ = [
    "FeedService",
    "build_candidate_query",
    "clamp_page",
    "get_feed_service",
    "resolve_gender_filter",
]
