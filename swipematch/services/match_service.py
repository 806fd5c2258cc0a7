from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from ..db import get_db
from ..models.identifiers import parse_object_id
from ..models.interaction import POSITIVE_ACTIONS
from ..models.match import MatchDocument, MatchSummary
from ..models.user import UserDocument
from ..repositories.exceptions import NotFoundRepositoryError
from ..repositories.interaction import InteractionRepository
from ..repositories.match import MatchRepository
from ..repositories.user import UserRepository
from ..utils.timeutil import Clock, utcnow
from .notification_sink import NotificationSink, get_notification_sink
from .user_service import to_detail

LOGGER = logging.getLogger("uvicorn.error")


class MatchAccessError(PermissionError):
    """Raised when a user reads a match they are not part of."""


@dataclass
class MatchOutcome:
    formed: bool
    created: bool = False
    match: Optional[MatchDocument] = None
    counterpart: Optional[UserDocument] = None


class MatchService:
    """Detects reciprocity on the ledger and materialises one match per pair."""

    def __init__(
        self,
        interactions: InteractionRepository,
        matches: MatchRepository,
        users: UserRepository,
        notifier: NotificationSink,
        *,
        clock: Clock = utcnow,
    ) -> None:
        self._interactions = interactions
        self._matches = matches
        self._users = users
        self._notifier = notifier
        self._clock = clock

    async def try_form_match(
        self,
        user_a: str,
        user_b: str,
        *,
        user_a_doc: Optional[UserDocument] = None,
        user_b_doc: Optional[UserDocument] = None,
    ) -> MatchOutcome:
        """Called right after ``user_a`` positively interacted with ``user_b``.

        Forms the match when ``user_b`` already liked or superliked ``user_a``. Both
        members are notified only by the call that inserted the match.
        """

        reciprocated = await self._interactions.exists_with_action(
            from_user_id=user_b,
            to_user_id=user_a,
            actions=POSITIVE_ACTIONS,
        )
        if not reciprocated:
            return MatchOutcome(formed=False)

        match, created = await self._matches.get_or_create(user_a, user_b, at=self._clock())

        members = await self._users.get_many(
            uid for uid, doc in ((user_a, user_a_doc), (user_b, user_b_doc)) if doc is None
        )
        a_doc = user_a_doc or members.get(user_a)
        b_doc = user_b_doc or members.get(user_b)

        if created:
            LOGGER.info("Match created %s (%s)", match.users_key, match.id)
            match_id = str(match.id)
            if b_doc is not None:
                self._notifier.notify_matched(recipient_id=user_a, other=b_doc, match_id=match_id)
            if a_doc is not None:
                self._notifier.notify_matched(recipient_id=user_b, other=a_doc, match_id=match_id)

        return MatchOutcome(formed=True, created=created, match=match, counterpart=b_doc)

    async def list_matches(self, user_id: str) -> List[MatchSummary]:
        matches = await self._matches.list_for_user(user_id)
        others = await self._users.get_many(match.counterpart_of(user_id) for match in matches)
        return [self._summarize(match, others.get(match.counterpart_of(user_id))) for match in matches]

    async def get_match(self, user_id: str, match_id: str) -> MatchSummary:
        oid = parse_object_id(match_id)
        match = await self._matches.get_by_id(oid) if oid is not None else None
        if not match:
            raise NotFoundRepositoryError("match not found")
        if not match.has_member(user_id):
            raise MatchAccessError("not a participant in this match")
        other = await self._users.get_by_user_id(match.counterpart_of(user_id))
        return self._summarize(match, other)

    @staticmethod
    def _summarize(match: MatchDocument, other: Optional[UserDocument]) -> MatchSummary:
        return MatchSummary(
            match_id=str(match.id),
            user=to_detail(other, is_matched=True) if other else None,
            created_at=match.created_at,
            last_message_at=match.last_message_at,
        )


def get_match_service() -> MatchService:
    db = get_db()
    return MatchService(
        InteractionRepository(db),
        MatchRepository(db),
        UserRepository(db),
        get_notification_sink(),
    )


__all__ = ["MatchAccessError", "MatchOutcome", "MatchService", "get_match_service"]
