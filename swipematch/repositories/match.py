"""Repository for mutual matches."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, List, Optional, Set, Tuple

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError

from ..db.collections import MATCHES_COLLECTION
from ..models.match import MatchDocument
from ..utils.pairs import sorted_pair, users_key
from .exceptions import RepositoryError, translate_store_errors

LOGGER = logging.getLogger("uvicorn.error")


class MatchRepository:
    """MongoDB access layer for match documents keyed by ``usersKey``."""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._database = database
        self._collection: AsyncIOMotorCollection = database[MATCHES_COLLECTION]

    @translate_store_errors
    async def find_by_key(self, key: str) -> Optional[MatchDocument]:
        doc = await self._collection.find_one({"usersKey": key})
        return MatchDocument(**doc) if doc else None

    @translate_store_errors
    async def get_by_id(self, match_id: ObjectId) -> Optional[MatchDocument]:
        doc = await self._collection.find_one({"_id": match_id})
        return MatchDocument(**doc) if doc else None

    @translate_store_errors
    async def get_or_create(
        self,
        user_a: str,
        user_b: str,
        *,
        at: datetime,
    ) -> Tuple[MatchDocument, bool]:
        """Return the pair's match, inserting it if absent. The flag is True only for the inserting call."""

        members = sorted_pair(user_a, user_b)
        key = users_key(*members)

        existing = await self.find_by_key(key)
        if existing:
            return existing, False

        doc = {
            "_id": ObjectId(),
            "users": list(members),
            "usersKey": key,
            "createdAt": at,
            "lastMessageAt": None,
        }
        try:
            await self._collection.insert_one(doc)
        except DuplicateKeyError:
            # Both sides liked concurrently and the other request inserted first
            LOGGER.debug("Match %s inserted concurrently; returning existing document", key)
            existing = await self.find_by_key(key)
            if existing is None:  # pragma: no cover - unique index guarantees a winner
                raise RepositoryError(f"match {key} vanished after duplicate key")
            return existing, False
        return MatchDocument(**doc), True

    @translate_store_errors
    async def existing_keys(self, keys: Iterable[str]) -> Set[str]:
        wanted = list(dict.fromkeys(k for k in keys if k))
        if not wanted:
            return set()
        cursor = self._collection.find(
            {"usersKey": {"$in": wanted}},
            projection={"_id": 0, "usersKey": 1},
        )
        return {doc["usersKey"] async for doc in cursor}

    @translate_store_errors
    async def list_for_user(self, user_id: str) -> List[MatchDocument]:
        cursor = self._collection.find({"users": user_id}).sort(
            [("lastMessageAt", DESCENDING), ("createdAt", DESCENDING)]
        )
        return [MatchDocument(**doc) async for doc in cursor]


__all__ = ["MatchRepository"]
