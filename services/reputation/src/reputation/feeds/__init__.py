"""Feed ingestion package."""

from .feed_store import FeedStore
from .scheduler import FeedScheduler

__all__ = ["FeedScheduler", "FeedStore"]
