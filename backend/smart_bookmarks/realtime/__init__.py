"""书签实时同步"""
from .events import (
    BookmarkInserted, BookmarkUpdated, BookmarkDeleted,
    ChangeEvent, parse_event, apply_event,
)
from .feed import ChangeFeed, EventStream, Subscription

__all__ = [
    "BookmarkInserted", "BookmarkUpdated", "BookmarkDeleted",
    "ChangeEvent", "parse_event", "apply_event",
    "ChangeFeed", "EventStream", "Subscription",
]
