"""Repository for the interaction ledger."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, List, Set

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from ..db.collections import INTERACTIONS_COLLECTION
from ..models.interaction import InteractionDocument
from .exceptions import DuplicateKeyRepositoryError, translate_store_errors

LOGGER = logging.getLogger("uvicorn.error")


class InteractionRepository:
    """Upsert-by-ordered-pair store of like/dislike/superlike edges."""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._database = database
        self._collection: AsyncIOMotorCollection = database[INTERACTIONS_COLLECTION]

    @translate_store_errors
    async def upsert(
        self,
        *,
        from_user_id: str,
        to_user_id: str,
        action: str,
        at: datetime,
    ) -> InteractionDocument:
        """Insert the (from, to) edge or overwrite its action and timestamp.

        Concurrent first submissions for the same pair can both attempt the insert;
        the loser gets a duplicate key error and its retry becomes a plain update.
        """

        query = {"fromUserId": from_user_id, "toUserId": to_user_id}
        update = {"$set": {"action": action, "createdAt": at}}
        for attempt in range(2):
            try:
                doc = await self._collection.find_one_and_update(
                    query,
                    update,
                    upsert=True,
                    return_document=ReturnDocument.AFTER,
                )
                return InteractionDocument(**doc)
            except DuplicateKeyError as exc:
                if attempt:
                    raise DuplicateKeyRepositoryError("interaction upsert conflict") from exc
                LOGGER.debug(
                    "Interaction upsert raced for %s -> %s; retrying as update",
                    from_user_id,
                    to_user_id,
                )
        raise DuplicateKeyRepositoryError("interaction upsert conflict")  # pragma: no cover

    @translate_store_errors
    async def delete(self, *, from_user_id: str, to_user_id: str) -> bool:
        result = await self._collection.delete_one({"fromUserId": from_user_id, "toUserId": to_user_id})
        return bool(result.deleted_count)

    @translate_store_errors
    async def exists_with_action(
        self,
        *,
        from_user_id: str,
        to_user_id: str,
        actions: Iterable[str],
    ) -> bool:
        doc = await self._collection.find_one(
            {
                "fromUserId": from_user_id,
                "toUserId": to_user_id,
                "action": {"$in": list(actions)},
            },
            projection={"_id": 1},
        )
        return doc is not None

    @translate_store_errors
    async def target_ids(self, from_user_id: str, actions: Iterable[str]) -> Set[str]:
        """Every target ``from_user_id`` has acted on with one of ``actions``."""

        cursor = self._collection.find(
            {"fromUserId": from_user_id, "action": {"$in": list(actions)}},
            projection={"_id": 0, "toUserId": 1},
        )
        return {doc["toUserId"] async for doc in cursor}

    @translate_store_errors
    async def recent_target_ids(self, from_user_id: str, action: str, window: int) -> List[str]:
        """The ``window`` most recent targets of ``action``, newest first."""

        if window <= 0:
            return []
        cursor = (
            self._collection.find(
                {"fromUserId": from_user_id, "action": action},
                projection={"_id": 0, "toUserId": 1},
            )
            .sort([("createdAt", DESCENDING), ("_id", DESCENDING)])
            .limit(window)
        )
        return [doc["toUserId"] async for doc in cursor]

    @translate_store_errors
    async def list_by_actions(
        self,
        from_user_id: str,
        actions: Iterable[str],
        *,
        skip: int,
        limit: int,
    ) -> List[InteractionDocument]:
        cursor = (
            self._collection.find({"fromUserId": from_user_id, "action": {"$in": list(actions)}})
            .sort([("createdAt", DESCENDING), ("_id", DESCENDING)])
            .skip(skip)
            .limit(limit)
        )
        return [InteractionDocument(**doc) async for doc in cursor]


__all__ = ["InteractionRepository"]
