"""SQLModel models package."""

from .subscription import Subscription
from .user import User
from .watch_history import WatchHistoryEntry

__all__ = [
    "User",
    "Subscription",
    "WatchHistoryEntry",
]
