from __future__ import annotations

import asyncio
from datetime import datetime

import pytest

from swipematch.repositories import InteractionRepository, MatchRepository, NotificationRepository, UserRepository
from swipematch.services.interaction_service import InteractionService
from swipematch.services.match_service import MatchAccessError, MatchService
from swipematch.services.notification_sink import NotificationSink, drain_pending_notifications


@pytest.mark.asyncio
async def test_reciprocal_likes_form_exactly_one_match(db, services, seed_user) -> None:
    await seed_user("bob", gender="male", phone="+2348011112222")
    await seed_user("alice", gender="female", phone="+2348033334444")
    interactions = services["interactions"]

    first = await interactions.record_interaction("bob", "alice", "like")
    assert first.matched is False

    second = await interactions.record_interaction("alice", "bob", "superlike")
    assert second.matched is True
    assert second.match is not None
    assert second.match.users_key == "alice_bob"
    assert second.match.users == ["alice", "bob"]
    assert second.counterpart is not None and second.counterpart.user_id == "bob"

    assert await db["matches"].count_documents({}) == 1


@pytest.mark.asyncio
async def test_dislike_never_forms_a_match(db, services, seed_user) -> None:
    await seed_user("bob")
    await seed_user("alice")
    interactions = services["interactions"]

    await interactions.record_interaction("bob", "alice", "like")
    outcome = await interactions.record_interaction("alice", "bob", "dislike")

    assert outcome.matched is False
    assert await db["matches"].count_documents({}) == 0


@pytest.mark.asyncio
async def test_match_notifications_sent_once(db, services, seed_user) -> None:
    await seed_user("bob")
    await seed_user("alice")
    interactions = services["interactions"]

    await interactions.record_interaction("bob", "alice", "like")
    await interactions.record_interaction("alice", "bob", "like")
    # Re-liking an existing match reports it again without re-notifying
    repeat = await interactions.record_interaction("alice", "bob", "like")
    assert repeat.matched is True
    await drain_pending_notifications()

    match_events = await db["notifications"].find({"type": "match"}).to_list(length=10)
    assert sorted(event["recipient"] for event in match_events) == ["alice", "bob"]
    match_id = str((await db["matches"].find_one({}))["_id"])
    assert all(event["data"]["matchId"] == match_id for event in match_events)

    like_events = await db["notifications"].find({"type": "like"}).to_list(length=10)
    assert len(like_events) == 3
    assert like_events[0]["message"] == "Bob liked you!"


@pytest.mark.asyncio
async def test_concurrent_insert_is_absorbed(db, monkeypatch) -> None:
    repo = MatchRepository(db)
    winner, created = await repo.get_or_create("alice", "bob", at=datetime(2024, 1, 1))
    assert created is True

    real_find = repo.find_by_key
    calls = {"n": 0}

    async def stale_find(key):
        calls["n"] += 1
        if calls["n"] == 1:
            return None
        return await real_find(key)

    # The first lookup misses, so the insert collides with the unique usersKey index
    monkeypatch.setattr(repo, "find_by_key", stale_find)
    loser, created_again = await repo.get_or_create("bob", "alice", at=datetime(2024, 1, 2))

    assert created_again is False
    assert loser.id == winner.id
    assert await db["matches"].count_documents({}) == 1


@pytest.mark.asyncio
async def test_simultaneous_reciprocal_likes(db, services, seed_user) -> None:
    await seed_user("bob")
    await seed_user("alice")
    interactions = services["interactions"]

    results = await asyncio.gather(
        interactions.record_interaction("bob", "alice", "like"),
        interactions.record_interaction("alice", "bob", "like"),
    )

    assert await db["matches"].count_documents({}) == 1
    assert any(outcome.matched for outcome in results)
    match_ids = {str(outcome.match.id) for outcome in results if outcome.matched}
    assert len(match_ids) == 1


@pytest.mark.asyncio
async def test_notification_failure_does_not_break_swipe(api_client, db, seed_user, auth, monkeypatch) -> None:
    await seed_user("bob")
    await seed_user("alice", phone="+2348033334444")

    async def broken_insert(self, event):
        raise RuntimeError("notification store down")

    monkeypatch.setattr(NotificationRepository, "insert", broken_insert)

    first = await api_client.post("/api/interactions", json={"to": "alice", "action": "like"}, headers=auth("bob"))
    assert first.status_code == 200

    second = await api_client.post("/api/interactions", json={"to": "bob", "action": "like"}, headers=auth("alice"))
    assert second.status_code == 200
    body = second.json()
    assert body["match"] is True
    assert body["matchId"]
    assert body["user"]["userId"] == "bob"
    # Matched counterpart is revealed in full
    assert body["user"]["phone"] == "+15550001234"
    assert body["user"]["isMatched"] is True
    await drain_pending_notifications()
    assert await db["notifications"].count_documents({}) == 0


@pytest.mark.asyncio
async def test_slow_notification_times_out(db, clock) -> None:
    async def slow_publisher(topic, payload):
        await asyncio.sleep(5)

    sink = NotificationSink(
        NotificationRepository(db),
        timeout_seconds=0.05,
        publisher=slow_publisher,
        clock=clock,
    )
    delivered = await sink.emit(recipient="alice", sender="bob", type="like", message="Bob liked you!")
    assert delivered is False


@pytest.mark.asyncio
async def test_slow_delivery_runs_in_background(db, clock, seed_user) -> None:
    await seed_user("bob")
    await seed_user("alice")
    released = asyncio.Event()
    published = []

    async def stalled_publisher(topic, payload):
        await released.wait()
        published.append(payload["type"])

    users = UserRepository(db)
    interactions_repo = InteractionRepository(db)
    sink = NotificationSink(NotificationRepository(db), timeout_seconds=10.0, publisher=stalled_publisher, clock=clock)
    match_service = MatchService(interactions_repo, MatchRepository(db), users, sink, clock=clock)
    interactions = InteractionService(interactions_repo, users, match_service, sink, clock=clock)

    await asyncio.wait_for(interactions.record_interaction("bob", "alice", "like"), timeout=1.0)
    outcome = await asyncio.wait_for(interactions.record_interaction("alice", "bob", "like"), timeout=1.0)
    assert outcome.matched is True
    assert published == []

    released.set()
    await drain_pending_notifications()
    assert sorted(published) == ["like", "like", "match", "match"]


@pytest.mark.asyncio
async def test_match_reads_and_access(api_client, services, seed_user, auth) -> None:
    for uid in ("alice", "bob", "carol"):
        await seed_user(uid)
    interactions = services["interactions"]
    await interactions.record_interaction("alice", "bob", "like")
    outcome = await interactions.record_interaction("bob", "alice", "like")
    match_id = str(outcome.match.id)

    listed = await api_client.get("/api/matches", headers=auth("alice"))
    assert listed.status_code == 200
    matches = listed.json()["matches"]
    assert [m["matchId"] for m in matches] == [match_id]
    assert matches[0]["user"]["userId"] == "bob"

    detail = await api_client.get(f"/api/matches/{match_id}", headers=auth("bob"))
    assert detail.status_code == 200
    assert detail.json()["match"]["user"]["userId"] == "alice"

    forbidden = await api_client.get(f"/api/matches/{match_id}", headers=auth("carol"))
    assert forbidden.status_code == 403

    malformed = await api_client.get("/api/matches/not-an-id", headers=auth("alice"))
    assert malformed.status_code == 404

    with pytest.raises(MatchAccessError):
        await services["matches"].get_match("carol", match_id)
