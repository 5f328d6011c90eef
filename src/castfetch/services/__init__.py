from .feed_loader import FeedLoadResult, FeedLoadService
from .race_fetcher import RaceFetcher, StatusSink

__all__ = [
    "RaceFetcher",
    "StatusSink",
    "FeedLoadService",
    "FeedLoadResult",
]
