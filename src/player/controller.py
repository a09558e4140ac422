"""Playback sequencing across a feed's episodes.

The controller starts in LOADING, moves to READY once a feed yields at
least one episode, and resolves each selected episode to a playable URL
through the episode cache.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from ..podcast.episode_cache import EpisodeCache
from ..podcast.feed_client import FeedClient
from ..podcast.models import Episode

logger = logging.getLogger(__name__)

LOADING_MESSAGE = "Loading episodes..."


class PlayerState(str, Enum):
    LOADING = "loading"
    READY = "ready"


@dataclass
class DownloadOutcome:
    """User-facing result of a download request."""

    success: bool
    message: str


class PlayerController:
    """Sequences playback for one feed at a time.

    Each load takes a generation token; a load whose token has been
    superseded by a later load discards its result.

    Example:
        player = PlayerController(feed_client, cache)
        await player.load("https://example.com/feed.xml", initial_index=10000)
        print(player.current_episode.title, player.audio_url)
        player.previous()
    """

    def __init__(self, feed_client: FeedClient, cache: EpisodeCache):
        self.feed_client = feed_client
        self.cache = cache
        self.state = PlayerState.LOADING
        self.feed_url: Optional[str] = None
        self.episodes: List[Episode] = []
        self.index = 0
        self.audio_url: Optional[str] = None
        self._generation = 0

    @property
    def current_episode(self) -> Optional[Episode]:
        if self.state is not PlayerState.READY:
            return None
        return self.episodes[self.index]

    @property
    def has_previous(self) -> bool:
        return self.state is PlayerState.READY and self.index > 0

    @property
    def has_next(self) -> bool:
        return self.state is PlayerState.READY and self.index < len(self.episodes) - 1

    @property
    def status_message(self) -> str:
        if self.state is PlayerState.LOADING:
            return LOADING_MESSAGE
        return self.current_episode.title or ""

    async def load(self, feed_url: str, initial_index: int = 0) -> PlayerState:
        """
        Load a feed's episodes and select the episode at `initial_index`.

        The index is clamped into range, so a large value selects the last
        episode. A feed with no episodes leaves the player in LOADING.

        Returns:
            PlayerState: the state after this load, or the current state if a
            newer load superseded it.
        """
        self._generation += 1
        token = self._generation

        self.state = PlayerState.LOADING
        self.feed_url = feed_url
        self.episodes = []
        self.index = 0
        self.audio_url = None

        if not feed_url:
            logger.error("RSS feed URL is empty or undefined.")
            return self.state

        episodes = await self.feed_client.fetch_episodes(feed_url)

        if token != self._generation:
            logger.debug(f"Discarding superseded load of {feed_url}")
            return self.state

        if not episodes:
            logger.warning(f"No playable episodes for {feed_url}")
            return self.state

        self.episodes = episodes
        self.index = max(0, min(initial_index, len(episodes) - 1))
        self.state = PlayerState.READY
        self._resolve_audio_url()
        return self.state

    def select(self, index: int) -> bool:
        """Select an episode by index, clamped into range. Returns True if it changed."""
        if self.state is not PlayerState.READY:
            return False
        clamped = max(0, min(index, len(self.episodes) - 1))
        if clamped == self.index:
            return False
        self.index = clamped
        self._resolve_audio_url()
        return True

    def next(self) -> bool:
        """Advance to the next episode; no-op on the last one."""
        if not self.has_next:
            return False
        return self.select(self.index + 1)

    def previous(self) -> bool:
        """Go back to the previous episode; no-op on the first one."""
        if not self.has_previous:
            return False
        return self.select(self.index - 1)

    async def download_current(self) -> DownloadOutcome:
        """Cache the current episode for offline playback."""
        episode = self.current_episode
        if episode is None or not episode.audio_url:
            return DownloadOutcome(False, "No episode audio to download.")

        try:
            await self.cache.ensure_cached(episode.audio_url)
        except Exception as e:
            logger.error(f"Error caching audio {episode.audio_url}: {e}")
            return DownloadOutcome(False, "Failed to download the episode.")

        self._resolve_audio_url()
        return DownloadOutcome(True, f'"{episode.title}" downloaded for offline playback!')

    def snapshot(self) -> Dict[str, Any]:
        """Plain-dict view of the player for the API and CLI."""
        episode = self.current_episode
        return {
            "state": self.state.value,
            "message": self.status_message,
            "feed_url": self.feed_url,
            "index": self.index if episode else None,
            "episode_count": len(self.episodes),
            "title": episode.title if episode else None,
            "audio_url": self.audio_url,
            "has_previous": self.has_previous,
            "has_next": self.has_next,
        }

    def _resolve_audio_url(self) -> None:
        episode = self.current_episode
        if episode is None or not episode.audio_url:
            self.audio_url = None
            return
        self.audio_url = self.cache.resolve_playable_url(episode.audio_url)
