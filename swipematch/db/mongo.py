from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from .collections import (
    INTERACTIONS_COLLECTION,
    MATCHES_COLLECTION,
    NOTIFICATIONS_COLLECTION,
    USERS_COLLECTION,
)


async def ensure_users_indexes(db: AsyncIOMotorDatabase) -> None:
    collection = db[USERS_COLLECTION]
    await collection.create_index("userId", name="users_user_id_unique", unique=True)
    await collection.create_index(
        [("gender", ASCENDING), ("lastActiveAt", DESCENDING)],
        name="users_gender_last_active_idx",
    )
    await collection.create_index("location.city", name="users_city_idx")
    await collection.create_index([("createdAt", DESCENDING)], name="users_created_at_idx")


async def ensure_interactions_indexes(db: AsyncIOMotorDatabase) -> None:
    collection = db[INTERACTIONS_COLLECTION]
    # One row per ordered pair; repeat swipes overwrite the action
    await collection.create_index(
        [("fromUserId", ASCENDING), ("toUserId", ASCENDING)],
        name="interactions_from_to_unique",
        unique=True,
    )
    await collection.create_index(
        [("fromUserId", ASCENDING), ("action", ASCENDING), ("createdAt", DESCENDING)],
        name="interactions_from_action_idx",
    )
    await collection.create_index(
        [("toUserId", ASCENDING), ("createdAt", DESCENDING)],
        name="interactions_to_idx",
    )


async def ensure_matches_indexes(db: AsyncIOMotorDatabase) -> None:
    collection = db[MATCHES_COLLECTION]
    await collection.create_index("usersKey", name="matches_users_key_unique", unique=True)
    await collection.create_index("users", name="matches_users_idx")
    await collection.create_index([("lastMessageAt", DESCENDING)], name="matches_last_message_idx")


async def ensure_notifications_indexes(db: AsyncIOMotorDatabase) -> None:
    collection = db[NOTIFICATIONS_COLLECTION]
    await collection.create_index(
        [("recipient", ASCENDING), ("read", ASCENDING), ("createdAt", DESCENDING)],
        name="notifications_recipient_idx",
    )


__all__ = [
    "ensure_interactions_indexes",
    "ensure_matches_indexes",
    "ensure_notifications_indexes",
    "ensure_users_indexes",
]
