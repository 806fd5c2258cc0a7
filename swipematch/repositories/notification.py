"""Repository for stored notification events."""

from __future__ import annotations

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase

from ..db.collections import NOTIFICATIONS_COLLECTION
from ..models.notification import NotificationEvent
from .exceptions import translate_store_errors


class NotificationRepository:
    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._database = database
        self._collection: AsyncIOMotorCollection = database[NOTIFICATIONS_COLLECTION]

    @translate_store_errors
    async def insert(self, event: NotificationEvent) -> ObjectId:
        doc = {"_id": ObjectId(), **event.model_dump(by_alias=True)}
        await self._collection.insert_one(doc)
        return doc["_id"]


__all__ = ["NotificationRepository"]
