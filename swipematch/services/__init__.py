from .feed_service import FeedService, get_feed_service
from .interaction_service import InteractionService, get_interaction_service
from .match_service import MatchService, get_match_service
from .notification_sink import NotificationSink, get_notification_sink
from .user_service import UserService, get_user_service

__all__ = [
    "FeedService",
    "InteractionService",
    "MatchService",
    "NotificationSink",
    "UserService",
    "get_feed_service",
    "get_interaction_service",
    "get_match_service",
    "get_notification_sink",
    "get_user_service",
]
