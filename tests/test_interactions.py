from __future__ import annotations

import asyncio
from datetime import datetime

import pytest
from pymongo.errors import DuplicateKeyError

from swipematch.repositories import InteractionRepository
from swipematch.repositories.exceptions import DuplicateKeyRepositoryError, NotFoundRepositoryError
from swipematch.services.interaction_service import InvalidInteractionError


@pytest.mark.asyncio
async def test_repeat_swipes_collapse_to_one_row(db, services, seed_user) -> None:
    await seed_user("alice", gender="female")
    await seed_user("bob", gender="male")
    interactions = services["interactions"]

    await interactions.record_interaction("alice", "bob", "dislike")
    await interactions.record_interaction("alice", "bob", "like")
    outcome = await interactions.record_interaction("alice", "bob", "superlike")

    rows = await db["interactions"].find({"fromUserId": "alice", "toUserId": "bob"}).to_list(length=10)
    assert len(rows) == 1
    assert rows[0]["action"] == "superlike"
    assert outcome.interaction.action == "superlike"
    assert outcome.matched is False


@pytest.mark.asyncio
async def test_interaction_bumps_last_active(db, services, seed_user) -> None:
    await seed_user("alice")
    await seed_user("bob")

    outcome = await services["interactions"].record_interaction("alice", "bob", "dislike")

    alice = await db["users"].find_one({"userId": "alice"})
    assert alice["lastActiveAt"] == outcome.interaction.created_at


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "to,action",
    [(None, "like"), ("bob", None), ("bob", "wink"), ("alice", "like")],
)
async def test_invalid_swipes_are_rejected(services, seed_user, to, action) -> None:
    await seed_user("alice")
    await seed_user("bob")
    with pytest.raises(InvalidInteractionError):
        await services["interactions"].record_interaction("alice", to, action)


@pytest.mark.asyncio
async def test_unknown_target_is_not_found(services, seed_user) -> None:
    await seed_user("alice")
    with pytest.raises(NotFoundRepositoryError):
        await services["interactions"].record_interaction("alice", "ghost", "like")


@pytest.mark.asyncio
async def test_post_interaction_http_errors(api_client, seed_user, auth) -> None:
    await seed_user("alice")
    await seed_user("bob")

    missing = await api_client.post("/api/interactions", json={"action": "like"}, headers=auth("alice"))
    assert missing.status_code == 400

    invalid = await api_client.post(
        "/api/interactions", json={"to": "bob", "action": "poke"}, headers=auth("alice")
    )
    assert invalid.status_code == 400

    self_target = await api_client.post(
        "/api/interactions", json={"to": "alice", "action": "like"}, headers=auth("alice")
    )
    assert self_target.status_code == 400

    absent = await api_client.post(
        "/api/interactions", json={"to": "nobody", "action": "like"}, headers=auth("alice")
    )
    assert absent.status_code == 404

    unauthenticated = await api_client.post("/api/interactions", json={"to": "bob", "action": "like"})
    assert unauthenticated.status_code == 401


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [None, {}, {"to": 123, "action": "like"}, {"to": "bob", "action": ["like"]}, {"to": {"id": "bob"}, "action": "like"}],
)
async def test_malformed_swipe_body_is_bad_request(api_client, db, seed_user, auth, payload) -> None:
    await seed_user("alice")
    await seed_user("bob")

    response = await api_client.post("/api/interactions", json=payload, headers=auth("alice"))
    assert response.status_code == 400
    assert await db["interactions"].count_documents({}) == 0


@pytest.mark.asyncio
async def test_undo_interaction(api_client, db, seed_user, auth) -> None:
    await seed_user("alice")
    await seed_user("bob")

    created = await api_client.post(
        "/api/interactions", json={"to": "bob", "action": "like"}, headers=auth("alice")
    )
    assert created.status_code == 200
    assert created.json() == {"ok": True, "match": False, "matchId": None, "user": None}

    removed = await api_client.delete("/api/interactions/bob", headers=auth("alice"))
    assert removed.status_code == 200
    assert removed.json()["ok"] is True
    assert await db["interactions"].count_documents({}) == 0

    again = await api_client.delete("/api/interactions/bob", headers=auth("alice"))
    assert again.status_code == 404


@pytest.mark.asyncio
async def test_liked_and_disliked_lists_newest_first(api_client, services, seed_user, auth) -> None:
    for uid in ("alice", "bob", "carol", "dave"):
        await seed_user(uid)
    interactions = services["interactions"]
    await interactions.record_interaction("alice", "bob", "like")
    await interactions.record_interaction("alice", "carol", "superlike")
    await interactions.record_interaction("alice", "dave", "dislike")

    liked = await api_client.get("/api/interactions/liked", headers=auth("alice"))
    assert liked.status_code == 200
    entries = liked.json()["likedUsers"]
    assert [entry["user"]["userId"] for entry in entries] == ["carol", "bob"]
    assert [entry["action"] for entry in entries] == ["superlike", "like"]
    assert "phone" not in entries[0]["user"]

    disliked = await api_client.get("/api/interactions/disliked", headers=auth("alice"))
    assert [entry["user"]["userId"] for entry in disliked.json()["dislikedUsers"]] == ["dave"]

    paged = await api_client.get("/api/interactions/liked?page=2&limit=1", headers=auth("alice"))
    assert [entry["user"]["userId"] for entry in paged.json()["likedUsers"]] == ["bob"]


@pytest.mark.asyncio
async def test_concurrent_identical_swipes_keep_one_row(db, services, seed_user) -> None:
    await seed_user("alice")
    await seed_user("bob")
    interactions = services["interactions"]

    outcomes = await asyncio.gather(
        *(interactions.record_interaction("alice", "bob", "like") for _ in range(5))
    )

    assert all(outcome.interaction.action == "like" for outcome in outcomes)
    assert await db["interactions"].count_documents({"fromUserId": "alice", "toUserId": "bob"}) == 1


class RacingInsertCollection:
    """Lets another writer insert the pair first, then reports the lost insert."""

    def __init__(self, inner) -> None:
        self._inner = inner
        self.calls = 0

    async def find_one_and_update(self, query, update, **kwargs):
        self.calls += 1
        if self.calls == 1:
            await self._inner.insert_one({**query, "action": "dislike", "createdAt": datetime(2024, 1, 1)})
            raise DuplicateKeyError("E11000 duplicate key error collection: interactions")
        return await self._inner.find_one_and_update(query, update, **kwargs)

    def __getattr__(self, name):
        return getattr(self._inner, name)


@pytest.mark.asyncio
async def test_upsert_retries_after_duplicate_key(db, monkeypatch) -> None:
    repo = InteractionRepository(db)
    racing = RacingInsertCollection(db["interactions"])
    monkeypatch.setattr(repo, "_collection", racing)

    doc = await repo.upsert(from_user_id="alice", to_user_id="bob", action="like", at=datetime(2024, 1, 2))

    assert racing.calls == 2
    assert doc.action == "like"
    assert doc.created_at == datetime(2024, 1, 2)
    rows = await db["interactions"].find({"fromUserId": "alice", "toUserId": "bob"}).to_list(length=10)
    assert len(rows) == 1
    assert rows[0]["action"] == "like"


@pytest.mark.asyncio
async def test_upsert_gives_up_after_second_conflict(db, monkeypatch) -> None:
    repo = InteractionRepository(db)

    class AlwaysConflicting:
        async def find_one_and_update(self, *args, **kwargs):
            raise DuplicateKeyError("E11000 duplicate key error collection: interactions")

    monkeypatch.setattr(repo, "_collection", AlwaysConflicting())

    with pytest.raises(DuplicateKeyRepositoryError):
        await repo.upsert(from_user_id="alice", to_user_id="bob", action="like", at=datetime(2024, 1, 2))
