from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import datetime, timedelta
from pathlib import Path
import sys
from typing import Any, Dict, Optional

import jwt
import pytest
import pytest_asyncio
from bson import ObjectId
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

SERVICE_ROOT = Path(__file__).resolve().parents[1]
if str(SERVICE_ROOT) not in sys.path:
    sys.path.insert(0, str(SERVICE_ROOT))

from swipematch.cache import cache
from swipematch.config import get_settings
from swipematch.db import close_mongo_connection, connect_to_mongo, get_db
from swipematch.main import app
from swipematch.repositories import (
    InteractionRepository,
    MatchRepository,
    NotificationRepository,
    UserRepository,
)
from swipematch.services.feed_service import FeedService
from swipematch.services.interaction_service import InteractionService
from swipematch.services.match_service import MatchService
from swipematch.services.notification_sink import NotificationSink, drain_pending_notifications
from swipematch.services.user_service import UserService

TEST_SECRET = "test-secret"


class FakeClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self.current = start or datetime(2024, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


@pytest.fixture(autouse=True)
def _env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MONGO_URI", "mongodb://localhost:27017/test")
    monkeypatch.setenv("MONGO_DB_NAME", "swipematch-test")
    monkeypatch.setenv("JWT_SECRET", TEST_SECRET)
    monkeypatch.setenv("REDIS_PUBSUB_ENABLED", "false")
    monkeypatch.delenv("REDIS_URL", raising=False)
    get_settings.cache_clear()  # type: ignore[attr-defined]


@pytest_asyncio.fixture
async def mongo_client(monkeypatch: pytest.MonkeyPatch) -> AsyncIterator[AsyncMongoMockClient]:
    client = AsyncMongoMockClient()

    def _client_factory(*_args, **_kwargs) -> AsyncMongoMockClient:
        return client

    monkeypatch.setattr("swipematch.db.AsyncIOMotorClient", _client_factory)
    yield client
    client.close()


@pytest_asyncio.fixture
async def db(mongo_client: AsyncMongoMockClient):
    await cache.delete_prefix("")
    await connect_to_mongo()
    yield get_db()
    await drain_pending_notifications()
    await close_mongo_connection()
    await cache.delete_prefix("")


@pytest_asyncio.fixture
async def api_client(db) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def services(db, clock: FakeClock) -> Dict[str, Any]:
    """Service graph over the mock database, driven by the fake clock."""

    users = UserRepository(db)
    interactions = InteractionRepository(db)
    matches = MatchRepository(db)
    sink = NotificationSink(NotificationRepository(db), timeout_seconds=1.0, publisher=None, clock=clock)
    match_service = MatchService(interactions, matches, users, sink, clock=clock)
    return {
        "sink": sink,
        "users": UserService(users, matches, clock=clock),
        "matches": match_service,
        "interactions": InteractionService(interactions, users, match_service, sink, clock=clock),
        "feed": FeedService(users, interactions, matches, clock=clock),
    }


def make_token(user_id: str, secret: str = TEST_SECRET) -> str:
    return jwt.encode({"userId": user_id}, secret, algorithm="HS256")


@pytest.fixture
def auth():
    def _headers(user_id: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {make_token(user_id)}"}

    return _headers


@pytest.fixture
def seed_user(db):
    return lambda user_id, **fields: insert_user(db, user_id, **fields)


async def insert_user(db, user_id: str, **fields: Any) -> Dict[str, Any]:
    now = fields.pop("now", datetime(2024, 1, 1))
    doc: Dict[str, Any] = {
        "_id": ObjectId(),
        "userId": user_id,
        "name": user_id.title(),
        "phone": "+15550001234",
        "gender": "female",
        "age": 28,
        "bio": "",
        "interests": [],
        "photos": [{"url": f"https://img.example/{user_id}.jpg", "isProfile": True}],
        "location": {"city": "Lagos"},
        "relationshipStatus": "single",
        "lifestyle": {},
        "verification": {"phoneVerified": True},
        "boosts": {"visibility": None, "superLikes": 0},
        "lastActiveAt": now,
        "createdAt": now,
    }
    doc.update(fields)
    await db["users"].insert_one(doc)
    return doc
