from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what PyMongo hands back for stored dates."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


__all__ = ["Clock", "utcnow"]
