"""Repository for the user directory collection."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from ..db.collections import USERS_COLLECTION
from ..models.user import UserDocument
from .exceptions import DuplicateKeyRepositoryError, translate_store_errors

LOGGER = logging.getLogger("uvicorn.error")

# Written only when a profile is first created; explicit updates take precedence
PROFILE_INSERT_DEFAULTS: Dict[str, Any] = {
    "relationshipStatus": "single",
    "verification": {"phoneVerified": True},
    "boosts": {"visibility": None, "superLikes": 0},
}

# Candidate ordering: boosted first, then most recently active, then newest
CANDIDATE_SORT = {"boostActive": -1, "lastActiveAt": -1, "createdAt": -1, "userId": 1}


class UserRepository:
    """Thin abstraction over the ``users`` collection."""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._database = database
        self._collection: AsyncIOMotorCollection = database[USERS_COLLECTION]

    @translate_store_errors
    async def get_by_user_id(self, user_id: str) -> Optional[UserDocument]:
        doc = await self._collection.find_one({"userId": user_id})
        return UserDocument(**doc) if doc else None

    @translate_store_errors
    async def get_many(self, user_ids: Iterable[str]) -> Dict[str, UserDocument]:
        ids = list(dict.fromkeys(uid for uid in user_ids if uid))
        if not ids:
            return {}
        docs = await self._collection.find({"userId": {"$in": ids}}).to_list(length=len(ids))
        return {doc["userId"]: UserDocument(**doc) for doc in docs}

    @translate_store_errors
    async def upsert_profile(
        self,
        *,
        user_id: str,
        updates: Dict[str, Any],
        now: datetime,
    ) -> UserDocument:
        """Create the directory entry on first write, otherwise ``$set`` the updates."""

        query = {"userId": user_id}
        on_insert = {key: value for key, value in PROFILE_INSERT_DEFAULTS.items() if key not in updates}
        update = {
            "$set": {**updates, "updatedAt": now},
            "$setOnInsert": {**on_insert, "createdAt": now, "lastActiveAt": now},
        }
        for attempt in range(2):
            try:
                doc = await self._collection.find_one_and_update(
                    query,
                    update,
                    upsert=True,
                    return_document=ReturnDocument.AFTER,
                )
                return UserDocument(**doc)
            except DuplicateKeyError as exc:
                # Two first writes raced on the unique userId; the retry updates the winner
                if attempt:
                    raise DuplicateKeyRepositoryError("user profile upsert conflict") from exc
                LOGGER.debug("Retrying profile upsert after duplicate key for userId=%s", user_id)
        raise DuplicateKeyRepositoryError("user profile upsert conflict")  # pragma: no cover

    @translate_store_errors
    async def touch_last_active(self, user_id: str, at: datetime) -> None:
        await self._collection.update_one({"userId": user_id}, {"$set": {"lastActiveAt": at}})

    @translate_store_errors
    async def find_candidates(
        self,
        query: Dict[str, Any],
        *,
        now: datetime,
        skip: int,
        limit: int,
    ) -> List[Tuple[UserDocument, bool]]:
        """Run a candidate query ranked boost-first. Returns (user, boost_active) pairs."""

        pipeline = [
            {"$match": query},
            {
                "$addFields": {
                    "boostActive": {
                        "$cond": [
                            {"$gt": [{"$ifNull": ["$boosts.visibility", None]}, now]},
                            1,
                            0,
                        ]
                    }
                }
            },
            {"$sort": CANDIDATE_SORT},
            {"$skip": skip},
            {"$limit": limit},
        ]
        rows = await self._collection.aggregate(pipeline).to_list(length=limit)
        results: List[Tuple[UserDocument, bool]] = []
        for row in rows:
            boosted = bool(row.pop("boostActive", 0))
            results.append((UserDocument(**row), boosted))
        return results

    @translate_store_errors
    async def popular_cities(self, limit: int = 20) -> List[str]:
        pipeline = [
            {"$match": {"location.city": {"$exists": True, "$nin": ["", None]}}},
            {"$group": {"_id": "$location.city", "count": {"$sum": 1}}},
            {"$sort": {"count": -1, "_id": 1}},
            {"$limit": limit},
        ]
        rows = await self._collection.aggregate(pipeline).to_list(length=limit)
        return [row["_id"] for row in rows if isinstance(row.get("_id"), str)]


__all__ = ["CANDIDATE_SORT", "PROFILE_INSERT_DEFAULTS", "UserRepository"]
