"""
Pydantic models for web API request/response validation.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from src.podcast.models import Feed


class FeedModel(BaseModel):
    """A subscribed podcast feed."""
    url: str = Field(..., min_length=1, max_length=2048, description="RSS feed URL")
    name: Optional[str] = Field(default=None, description="Podcast title")
    image: Optional[str] = Field(default=None, description="Podcast artwork URL")

    @classmethod
    def from_feed(cls, feed: Feed) -> "FeedModel":
        return cls(url=feed.url, name=feed.name, image=feed.image)

    def to_feed(self) -> Feed:
        return Feed(url=self.url, name=self.name, image=self.image)


class FeedListResponse(BaseModel):
    """Response model for feed listings."""
    feeds: List[FeedModel] = Field(..., description="Feeds in display order")
    count: int = Field(..., description="Number of feeds")


# --- Registry Models ---


class AddFeedRequest(BaseModel):
    """Request model for subscribing to a feed."""
    url: str = Field(..., max_length=2048, description="RSS feed URL")


class RemoveFeedResponse(BaseModel):
    """Response model for removing a feed."""
    url: str = Field(..., description="Feed URL that was removed")
    removed: int = Field(..., description="Number of entries removed")


# --- Player Models ---


class PlayerStateResponse(BaseModel):
    """Snapshot of the player for one feed."""
    state: Literal["loading", "ready"] = Field(..., description="Player state")
    message: str = Field(..., description="Status line: episode title or loading notice")
    feed_url: Optional[str] = Field(default=None, description="Feed being played")
    index: Optional[int] = Field(default=None, description="Selected episode index (oldest first)")
    episode_count: int = Field(default=0, description="Number of episodes in the feed")
    title: Optional[str] = Field(default=None, description="Selected episode title")
    audio_url: Optional[str] = Field(default=None, description="Playable URL, local if cached")
    has_previous: bool = Field(default=False, description="Whether a previous episode exists")
    has_next: bool = Field(default=False, description="Whether a next episode exists")


class DownloadRequest(BaseModel):
    """Request model for caching an episode for offline playback."""
    url: str = Field(..., max_length=2048, description="Episode audio URL")
    title: Optional[str] = Field(default=None, description="Episode title for the status message")


class DownloadResponse(BaseModel):
    """Response model for an offline download."""
    url: str = Field(..., description="Episode audio URL")
    downloaded: bool = Field(..., description="False if the episode was already cached")
    message: str = Field(..., description="Human-readable status message")


class CacheInventoryResponse(BaseModel):
    """URLs available for offline playback."""
    urls: List[str] = Field(..., description="Cached episode audio URLs")
    count: int = Field(..., description="Number of cached episodes")
