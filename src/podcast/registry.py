"""Registry of subscribed feeds and recently viewed feeds.

Both collections are loaded once from a CollectionStore and written back
whole after every mutation.
"""

import asyncio
import logging
from typing import List

from ..storage.store import FEEDS_KEY, RECENTLY_VIEWED_KEY, CollectionStore
from .errors import CacheError, InputValidationError
from .feed_client import FeedClient
from .models import Feed, FeedResult, feeds_from_records

logger = logging.getLogger(__name__)

RECENTLY_VIEWED_LIMIT = 3


class FeedRegistry:
    """Client-held collection of subscribed feeds and recent views.

    Example:
        registry = FeedRegistry(store=JsonFileStore(path), feed_client=FeedClient())
        registry.load()
        result = await registry.add_feed("https://example.com/feed.xml")
        if not result.ok:
            print(result.error)
    """

    def __init__(
        self,
        store: CollectionStore,
        feed_client: FeedClient,
        dedupe_on_add: bool = False,
    ):
        """
        Create a registry backed by `store`.

        Parameters:
            store: Persistence for the feed and recently viewed collections.
            feed_client: Used to fetch metadata for newly added feeds.
            dedupe_on_add: Replace an existing entry with the same url instead
                of appending a duplicate.
        """
        self.store = store
        self.feed_client = feed_client
        self.dedupe_on_add = dedupe_on_add
        self._feeds: List[Feed] = []
        self._recently_viewed: List[Feed] = []
        # Serializes read-modify-write cycles across overlapping coroutines
        self._lock = asyncio.Lock()

    @property
    def feeds(self) -> List[Feed]:
        return list(self._feeds)

    @property
    def recently_viewed(self) -> List[Feed]:
        return list(self._recently_viewed)

    def load(self) -> None:
        """Rehydrate both collections from the store."""
        self._feeds = feeds_from_records(self.store.get_collection(FEEDS_KEY))

        recent: List[Feed] = []
        for feed in feeds_from_records(self.store.get_collection(RECENTLY_VIEWED_KEY)):
            if all(existing.url != feed.url for existing in recent):
                recent.append(feed)
        self._recently_viewed = recent[:RECENTLY_VIEWED_LIMIT]

        logger.info(
            f"Loaded {len(self._feeds)} feeds and "
            f"{len(self._recently_viewed)} recently viewed"
        )

    async def add_feed(self, url: str) -> FeedResult:
        """
        Subscribe to a feed after fetching its metadata.

        Returns:
            FeedResult: the fetch outcome. State is only changed when it is ok.

        Raises:
            InputValidationError: If `url` is empty or whitespace.
            CacheError: If the updated collection cannot be saved; the
                registry is left unchanged.
        """
        url = (url or "").strip()
        if not url:
            raise InputValidationError("Please enter a valid RSS feed URL.")

        result = await self.feed_client.fetch_metadata(url)
        if not result.ok:
            logger.warning(f"Not adding feed {url}: {result.error}")
            return result

        async with self._lock:
            feeds = self._feeds
            if self.dedupe_on_add:
                feeds = [f for f in feeds if f.url != url]
            feeds = feeds + [result.feed]
            self._persist(FEEDS_KEY, feeds)
            self._feeds = feeds

        logger.info(f"Added feed '{result.feed.name}' ({url})")
        return result

    async def remove_feed(self, url: str) -> int:
        """Remove every entry with `url`. Returns the number removed."""
        async with self._lock:
            remaining = [f for f in self._feeds if f.url != url]
            removed = len(self._feeds) - len(remaining)
            self._persist(FEEDS_KEY, remaining)
            self._feeds = remaining

        if removed:
            logger.info(f"Removed feed {url}")
        return removed

    async def record_view(self, feed: Feed) -> None:
        """Move or insert `feed` at the front of the recently viewed list."""
        async with self._lock:
            updated = [feed] + [f for f in self._recently_viewed if f.url != feed.url]
            updated = updated[:RECENTLY_VIEWED_LIMIT]
            self._persist(RECENTLY_VIEWED_KEY, updated)
            self._recently_viewed = updated

    def _persist(self, key: str, feeds: List[Feed]) -> None:
        try:
            self.store.set_collection(key, [f.to_dict() for f in feeds])
        except OSError as e:
            raise CacheError(f"Failed to save {key}: {e}") from e
