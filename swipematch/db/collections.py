"""MongoDB collection names used by swipematch."""

from __future__ import annotations

USERS_COLLECTION = "users"
INTERACTIONS_COLLECTION = "interactions"
MATCHES_COLLECTION = "matches"
NOTIFICATIONS_COLLECTION = "notifications"

__all__ = [
    "USERS_COLLECTION",
    "INTERACTIONS_COLLECTION",
    "MATCHES_COLLECTION",
    "NOTIFICATIONS_COLLECTION",
]
