"""
Pytest configuration and fixtures for BingeCast tests.

This module runs before any test imports, setting up the test environment.
Environment variables are explicitly set to ensure deterministic test behavior
regardless of external environment configuration.
"""

import os
import tempfile

import httpx
import pytest

# Keep the module-level web app away from the user's real data directory
os.environ["DATA_DIRECTORY"] = tempfile.mkdtemp(prefix="bingecast-test-")

# Feeds are fetched directly unless a test configures a proxy
os.environ["FEED_PROXY_URL"] = ""

# Generous proxy rate limit so repeated test requests are never throttled
os.environ["PROXY_RATE_LIMIT"] = "10000/minute"


SAMPLE_RSS_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"
     xmlns:itunes="http://www.itunes.com/dtds/podcast-1.0.dtd"
     xmlns:media="http://search.yahoo.com/mrss/">
  <channel>
    <title>Test Podcast</title>
    <description>A podcast for testing</description>
    <itunes:image href="https://example.com/artwork.jpg"/>

    <item>
      <title>Episode 3: Wrap Up</title>
      <enclosure url="https://example.com/ep3.mp3" length="1000" type="audio/mpeg"/>
    </item>
    <item>
      <title>Episode 2: Deep Dive</title>
      <enclosure url="https://example.com/ep2.mp3" length="1000" type="audio/mpeg"/>
    </item>
    <item>
      <title>Episode 1: Introduction</title>
      <enclosure url="https://example.com/ep1.mp3" length="1000" type="audio/mpeg"/>
    </item>
  </channel>
</rss>"""


EMPTY_RSS_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"><channel><title>Quiet Podcast</title></channel></rss>"""


def make_http_client(routes, calls=None) -> httpx.AsyncClient:
    """
    Build an httpx client whose responses come from `routes`.

    Parameters:
        routes (dict): Maps a URL (without query string) to either a
            `(status_code, body)` tuple or an exception instance to raise.
        calls (list | None): If given, every requested URL is appended to it.

    Unknown URLs answer 404.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url).split("?", 1)[0]
        if calls is not None:
            calls.append(str(request.url))
        route = routes.get(url)
        if isinstance(route, Exception):
            raise route
        if route is None:
            return httpx.Response(404, text="not found")
        status, body = route
        return httpx.Response(status, content=body)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def sample_feed_xml():
    """RSS document with three episodes listed newest first."""
    return SAMPLE_RSS_FEED


FEED_URL = "https://example.com/feed.xml"
EMPTY_FEED_URL = "https://example.com/empty.xml"
BROKEN_FEED_URL = "https://example.com/broken.xml"

WEB_ROUTES = {
    FEED_URL: (200, SAMPLE_RSS_FEED),
    EMPTY_FEED_URL: (200, EMPTY_RSS_FEED),
    BROKEN_FEED_URL: (200, "<html><body>Moved</body>"),
    "https://example.com/ep1.mp3": (200, b"audio-1"),
    "https://example.com/ep2.mp3": (200, b"audio-2"),
    "https://example.com/ep3.mp3": (200, b"audio-3"),
}


@pytest.fixture
def web_app(tmp_path, monkeypatch):
    """
    FastAPI app whose services use an isolated data directory and a mock network.

    Outbound requests are answered from WEB_ROUTES; every requested URL is
    recorded in `app.state.http_calls`.
    """
    from src.config import Config
    from src.podcast.episode_cache import EpisodeCache
    from src.podcast.feed_client import FeedClient
    from src.podcast.registry import FeedRegistry
    from src.web.app import cached_audio_reference, create_app

    monkeypatch.setenv("DATA_DIRECTORY", str(tmp_path))
    app = create_app(Config())

    calls = []
    http_client = make_http_client(WEB_ROUTES, calls)
    feed_client = FeedClient(http_client=http_client)
    app.state.http_calls = calls
    app.state.feed_client = feed_client
    app.state.registry = FeedRegistry(store=app.state.store, feed_client=feed_client)
    app.state.registry.load()
    app.state.episode_cache = EpisodeCache(
        app.state.config.audio_cache_directory,
        app.state.store,
        http_client=http_client,
        reference_builder=cached_audio_reference,
    )
    return app
