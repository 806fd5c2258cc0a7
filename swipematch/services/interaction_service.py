from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from ..db import get_db
from ..models.interaction import (
    ACTIONS,
    POSITIVE_ACTIONS,
    DislikedUserEntry,
    InteractionDocument,
    LikedUserEntry,
)
from ..models.match import MatchDocument
from ..models.user import UserDocument
from ..repositories.exceptions import NotFoundRepositoryError
from ..repositories.interaction import InteractionRepository
from ..repositories.match import MatchRepository
from ..repositories.user import UserRepository
from ..utils.timeutil import Clock, utcnow
from .match_service import MatchService
from .notification_sink import NotificationSink, get_notification_sink
from .user_service import to_summary

LOGGER = logging.getLogger("uvicorn.error")

HISTORY_DEFAULT_LIMIT = 20
HISTORY_MAX_LIMIT = 50


class InvalidInteractionError(ValueError):
    """Malformed swipe input: missing fields, unknown action or self-target."""


@dataclass
class InteractionOutcome:
    interaction: InteractionDocument
    matched: bool = False
    match: Optional[MatchDocument] = None
    counterpart: Optional[UserDocument] = None


def _clean_id(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _history_page(page: Optional[int], limit: Optional[int]) -> tuple[int, int]:
    size = limit if limit and limit > 0 else HISTORY_DEFAULT_LIMIT
    size = min(size, HISTORY_MAX_LIMIT)
    number = page if page and page > 0 else 1
    return (number - 1) * size, size


class InteractionService:
    """Records swipes on the ledger and hands positive ones to match formation."""

    def __init__(
        self,
        interactions: InteractionRepository,
        users: UserRepository,
        matches: MatchService,
        notifier: NotificationSink,
        *,
        clock: Clock = utcnow,
    ) -> None:
        self._interactions = interactions
        self._users = users
        self._matches = matches
        self._notifier = notifier
        self._clock = clock

    async def record_interaction(self, from_user_id: str, to_user_id: Any, action: Any) -> InteractionOutcome:
        from_id = _clean_id(from_user_id)
        to_id = _clean_id(to_user_id)
        if not to_id or not action:
            raise InvalidInteractionError("to and action are required")
        if not isinstance(action, str) or action not in ACTIONS:
            raise InvalidInteractionError("Invalid action")
        if to_id == from_id:
            raise InvalidInteractionError("Cannot interact with yourself")

        target = await self._users.get_by_user_id(to_id)
        if not target:
            raise NotFoundRepositoryError("Target user not found")

        now = self._clock()
        interaction = await self._interactions.upsert(
            from_user_id=from_id,
            to_user_id=to_id,
            action=action,
            at=now,
        )
        await self._users.touch_last_active(from_id, now)
        LOGGER.info("Interaction saved: %s -> %s -> %s", from_id, action, to_id)

        if action not in POSITIVE_ACTIONS:
            return InteractionOutcome(interaction=interaction)

        sender = await self._users.get_by_user_id(from_id)
        if sender is not None:
            self._notifier.notify_liked(sender=sender, recipient_id=to_id, action=action)

        outcome = await self._matches.try_form_match(
            from_id,
            to_id,
            user_a_doc=sender,
            user_b_doc=target,
        )
        return InteractionOutcome(
            interaction=interaction,
            matched=outcome.formed,
            match=outcome.match,
            counterpart=outcome.counterpart,
        )

    async def remove_interaction(self, from_user_id: str, to_user_id: Any) -> None:
        """Undo a swipe. Matches already formed are left untouched."""

        to_id = _clean_id(to_user_id)
        if not to_id:
            raise InvalidInteractionError("User ID required")
        removed = await self._interactions.delete(from_user_id=_clean_id(from_user_id), to_user_id=to_id)
        if not removed:
            raise NotFoundRepositoryError("Interaction not found")

    async def list_liked(
        self,
        user_id: str,
        *,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[LikedUserEntry]:
        skip, size = _history_page(page, limit)
        rows = await self._interactions.list_by_actions(user_id, POSITIVE_ACTIONS, skip=skip, limit=size)
        users = await self._users.get_many(row.to_user_id for row in rows)
        return [
            LikedUserEntry(user=to_summary(users[row.to_user_id]), action=row.action, liked_at=row.created_at)
            for row in rows
            if row.to_user_id in users
        ]

    async def list_disliked(
        self,
        user_id: str,
        *,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[DislikedUserEntry]:
        skip, size = _history_page(page, limit)
        rows = await self._interactions.list_by_actions(user_id, ("dislike",), skip=skip, limit=size)
        users = await self._users.get_many(row.to_user_id for row in rows)
        return [
            DislikedUserEntry(user=to_summary(users[row.to_user_id]), disliked_at=row.created_at)
            for row in rows
            if row.to_user_id in users
        ]


def get_interaction_service() -> InteractionService:
    db = get_db()
    interactions = InteractionRepository(db)
    users = UserRepository(db)
    notifier = get_notification_sink()
    matches = MatchService(interactions, MatchRepository(db), users, notifier)
    return InteractionService(interactions, users, matches, notifier)


__all__ = [
    "InteractionOutcome",
    "InteractionService",
    "InvalidInteractionError",
    "get_interaction_service",
]
