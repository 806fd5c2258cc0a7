"""Repository layer to abstract MongoDB access patterns."""

from .interaction import InteractionRepository
from .match import MatchRepository
from .notification import NotificationRepository
from .user import UserRepository

__all__ = [
    "InteractionRepository",
    "MatchRepository",
    "NotificationRepository",
    "UserRepository",
]
