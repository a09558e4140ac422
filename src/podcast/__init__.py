"""Podcast feed ingestion module.

Provides functionality for:
- RSS feed fetching and parsing
- Subscribed and recently viewed feed registry
- Offline episode audio caching
"""

from .episode_cache import EpisodeCache
from .errors import (
    CacheError,
    FeedParseError,
    InputValidationError,
    NetworkError,
    PodcastError,
)
from .feed_client import FeedClient
from .feed_parser import FeedParser, ParsedFeed
from .models import INVALID_FEED_NAME, Episode, Feed, FeedResult
from .registry import RECENTLY_VIEWED_LIMIT, FeedRegistry

__all__ = [
    "CacheError",
    "Episode",
    "EpisodeCache",
    "Feed",
    "FeedClient",
    "FeedParseError",
    "FeedParser",
    "FeedRegistry",
    "FeedResult",
    "INVALID_FEED_NAME",
    "InputValidationError",
    "NetworkError",
    "ParsedFeed",
    "PodcastError",
    "RECENTLY_VIEWED_LIMIT",
]
