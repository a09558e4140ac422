"""Feed, episode and result types shared across the ingestion pipeline."""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# Name carried by the placeholder feed returned when a fetch or parse fails
INVALID_FEED_NAME = "Invalid Feed"


@dataclass(frozen=True)
class Feed:
    """A subscribed podcast source, identified by its RSS URL."""

    url: str
    name: Optional[str] = None
    image: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Any) -> Optional["Feed"]:
        """
        Build a Feed from a stored mapping.

        Returns:
            Feed, or None if the mapping is not a dict or has no usable url.
        """
        if not isinstance(data, dict):
            return None
        url = data.get("url")
        if not isinstance(url, str) or not url:
            return None
        name = data.get("name")
        image = data.get("image")
        return cls(
            url=url,
            name=name if isinstance(name, str) else None,
            image=image if isinstance(image, str) else None,
        )

    @classmethod
    def invalid(cls, url: str) -> "Feed":
        """Placeholder feed signalling a failed metadata fetch."""
        return cls(url=url, name=INVALID_FEED_NAME, image=None)


@dataclass(frozen=True)
class Episode:
    """One playable item extracted from a feed document."""

    title: Optional[str] = None
    audio_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class FeedResult:
    """Outcome of a metadata fetch.

    A failed result still carries the placeholder feed from `Feed.invalid`
    so code that only looks at `feed.name` sees "Invalid Feed".
    """

    feed: Feed
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, feed: Feed) -> "FeedResult":
        return cls(feed=feed)

    @classmethod
    def failure(cls, url: str, error: str) -> "FeedResult":
        return cls(feed=Feed.invalid(url), error=error)


def feeds_from_records(records: List[Any]) -> List[Feed]:
    """Convert stored records to feeds, dropping entries that are not feeds."""
    feeds = []
    for record in records:
        feed = Feed.from_dict(record)
        if feed is None:
            logger.warning(f"Skipping malformed stored feed record: {record!r}")
            continue
        feeds.append(feed)
    return feeds
