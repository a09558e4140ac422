"""Tests for the player controller."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import EMPTY_RSS_FEED, SAMPLE_RSS_FEED, make_http_client
from src.player.controller import LOADING_MESSAGE, PlayerController, PlayerState
from src.podcast.episode_cache import EpisodeCache
from src.podcast.errors import NetworkError
from src.podcast.feed_client import FeedClient
from src.podcast.models import Episode
from src.storage.store import InMemoryStore

FEED_URL = "https://example.com/feed.xml"
EMPTY_URL = "https://example.com/empty.xml"


def _episodes(count):
    return [
        Episode(title=f"Episode {i}", audio_url=f"https://example.com/{i}.mp3")
        for i in range(count)
    ]


@pytest.fixture
def feed_client():
    client = MagicMock(spec=FeedClient)
    client.fetch_episodes = AsyncMock(return_value=_episodes(5))
    return client


@pytest.fixture
def cache():
    cache = MagicMock(spec=EpisodeCache)
    cache.resolve_playable_url.side_effect = lambda url: url
    cache.ensure_cached = AsyncMock(return_value=True)
    return cache


@pytest.fixture
def player(feed_client, cache):
    return PlayerController(feed_client, cache)


class TestLoad:
    """Tests for loading a feed into the player."""

    def test_initial_state(self, player):
        """Test that a new player is loading with nothing selected."""
        assert player.state is PlayerState.LOADING
        assert player.current_episode is None
        assert player.status_message == LOADING_MESSAGE
        assert not player.has_previous
        assert not player.has_next

    def test_load_selects_initial_index(self, player):
        """Test that the requested episode is selected."""
        state = asyncio.run(player.load(FEED_URL, initial_index=2))

        assert state is PlayerState.READY
        assert player.index == 2
        assert player.current_episode.title == "Episode 2"
        assert player.audio_url == "https://example.com/2.mp3"
        assert player.status_message == "Episode 2"

    @pytest.mark.parametrize("requested, expected", [(10000, 4), (5, 4), (-3, 0), (0, 0)])
    def test_index_is_clamped(self, player, requested, expected):
        """Test that out of range indexes are clamped."""
        asyncio.run(player.load(FEED_URL, initial_index=requested))
        assert player.index == expected

    def test_empty_feed_stays_loading(self, player, feed_client):
        """Test that a feed without episodes leaves the player loading."""
        feed_client.fetch_episodes.return_value = []

        state = asyncio.run(player.load(FEED_URL))

        assert state is PlayerState.LOADING
        assert player.status_message == LOADING_MESSAGE
        assert player.current_episode is None
        assert player.audio_url is None

    def test_empty_url_does_not_fetch(self, player, feed_client):
        """Test that an empty url stays loading without fetching."""
        asyncio.run(player.load(""))

        assert player.state is PlayerState.LOADING
        feed_client.fetch_episodes.assert_not_called()

    def test_audio_url_is_resolved_through_cache(self, player, cache):
        """Test that the selected episode's audio goes through the cache."""
        cache.resolve_playable_url.side_effect = lambda url: f"file:///cache/{url[-5:]}"

        asyncio.run(player.load(FEED_URL))

        assert player.audio_url == "file:///cache/0.mp3"
        cache.resolve_playable_url.assert_called_with("https://example.com/0.mp3")

    def test_superseded_load_is_discarded(self, cache):
        """Test that a slower earlier load cannot overwrite a later one."""
        release_first = asyncio.Event()
        slow_url = "https://example.com/slow.xml"

        async def fetch_episodes(url):
            if url == slow_url:
                await release_first.wait()
                return _episodes(2)
            return _episodes(5)

        feed_client = MagicMock(spec=FeedClient)
        feed_client.fetch_episodes = fetch_episodes
        player = PlayerController(feed_client, cache)

        async def run():
            first = asyncio.create_task(player.load(slow_url, initial_index=1))
            await asyncio.sleep(0)
            await player.load(FEED_URL, initial_index=3)
            release_first.set()
            await first

        asyncio.run(run())

        assert player.feed_url == FEED_URL
        assert len(player.episodes) == 5
        assert player.index == 3

    def test_reload_resets_selection(self, player, feed_client):
        """Test that loading a new feed replaces the previous one."""
        asyncio.run(player.load(FEED_URL, initial_index=4))
        feed_client.fetch_episodes.return_value = _episodes(2)

        asyncio.run(player.load("https://example.com/other.xml"))

        assert player.index == 0
        assert len(player.episodes) == 2


class TestNavigation:
    """Tests for moving between episodes."""

    def test_next_and_previous(self, player):
        """Test stepping forward and back."""
        asyncio.run(player.load(FEED_URL, initial_index=1))

        assert player.next() is True
        assert player.index == 2
        assert player.previous() is True
        assert player.previous() is True
        assert player.index == 0

    def test_previous_at_first_is_noop(self, player):
        """Test that previous on the first episode does nothing."""
        asyncio.run(player.load(FEED_URL))

        assert not player.has_previous
        assert player.previous() is False
        assert player.index == 0

    def test_next_at_last_is_noop(self, player):
        """Test that next on the last episode does nothing."""
        asyncio.run(player.load(FEED_URL, initial_index=10000))

        assert not player.has_next
        assert player.next() is False
        assert player.index == 4

    def test_navigation_while_loading(self, player):
        """Test that navigation is ignored before a feed is loaded."""
        assert player.next() is False
        assert player.previous() is False
        assert player.select(3) is False

    def test_select_clamps(self, player):
        """Test that select clamps the index and re-resolves audio."""
        asyncio.run(player.load(FEED_URL))

        assert player.select(99) is True
        assert player.index == 4
        assert player.audio_url == "https://example.com/4.mp3"
        assert player.select(99) is False


class TestDownloadCurrent:
    """Tests for caching the current episode."""

    def test_success_message(self, player, cache):
        """Test the message shown after a successful download."""
        asyncio.run(player.load(FEED_URL, initial_index=1))

        outcome = asyncio.run(player.download_current())

        assert outcome.success
        assert outcome.message == '"Episode 1" downloaded for offline playback!'
        cache.ensure_cached.assert_awaited_once_with("https://example.com/1.mp3")

    def test_failure_message(self, player, cache):
        """Test that download errors become a failure outcome."""
        cache.ensure_cached.side_effect = NetworkError("HTTP 500", status_code=500)
        asyncio.run(player.load(FEED_URL))

        outcome = asyncio.run(player.download_current())

        assert not outcome.success
        assert outcome.message == "Failed to download the episode."

    def test_nothing_to_download(self, player, cache):
        """Test that downloading while loading is refused."""
        outcome = asyncio.run(player.download_current())

        assert not outcome.success
        cache.ensure_cached.assert_not_called()


class TestSnapshot:
    """Tests for the plain-dict player view."""

    def test_loading_snapshot(self, player):
        """Test the snapshot before any episodes are loaded."""
        snapshot = player.snapshot()

        assert snapshot["state"] == "loading"
        assert snapshot["message"] == LOADING_MESSAGE
        assert snapshot["index"] is None
        assert snapshot["episode_count"] == 0

    def test_ready_snapshot(self, player):
        """Test the snapshot of a loaded player."""
        asyncio.run(player.load(FEED_URL, initial_index=4))

        assert player.snapshot() == {
            "state": "ready",
            "message": "Episode 4",
            "feed_url": FEED_URL,
            "index": 4,
            "episode_count": 5,
            "title": "Episode 4",
            "audio_url": "https://example.com/4.mp3",
            "has_previous": True,
            "has_next": False,
        }


class TestWithRealCollaborators:
    """End-to-end player flow with a real feed client and cache."""

    def test_play_then_download_switches_to_local_audio(self, tmp_path):
        """Test that downloading the current episode makes it play locally."""
        http_client = make_http_client({
            FEED_URL: (200, SAMPLE_RSS_FEED),
            EMPTY_URL: (200, EMPTY_RSS_FEED),
            "https://example.com/ep3.mp3": (200, b"audio"),
        })
        feed_client = FeedClient(http_client=http_client)
        cache = EpisodeCache(str(tmp_path), InMemoryStore(), http_client=http_client)
        player = PlayerController(feed_client, cache)

        asyncio.run(player.load(FEED_URL, initial_index=10000))
        assert player.current_episode.title == "Episode 3: Wrap Up"
        assert player.audio_url == "https://example.com/ep3.mp3"

        outcome = asyncio.run(player.download_current())

        assert outcome.success
        assert player.audio_url.startswith("file://")

        asyncio.run(player.load(EMPTY_URL))
        assert player.state is PlayerState.LOADING
