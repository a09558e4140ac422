"""Tests for player and offline cache routes."""

from urllib.parse import quote

import pytest
from fastapi.testclient import TestClient

from conftest import EMPTY_FEED_URL, FEED_URL, WEB_ROUTES, make_http_client
from src.podcast.episode_cache import EpisodeCache
from src.storage.store import JsonFileStore
from src.web.app import cached_audio_reference

EP3_URL = "https://example.com/ep3.mp3"


@pytest.fixture
def client(web_app):
    return TestClient(web_app)


class TestCachedAudioReference:
    """Tests for the cache route reference builder."""

    def test_reference_is_quoted(self):
        """Test that the original url is fully quoted into the query string."""
        assert cached_audio_reference(None, EP3_URL) == (
            "/api/cache/audio?url=https%3A%2F%2Fexample.com%2Fep3.mp3"
        )


class TestPlayerEndpoint:
    """Tests for GET /api/player."""

    def test_latest_episode(self, client):
        """Test that index 10000 selects the latest episode."""
        response = client.get("/api/player", params={"rssfeed": FEED_URL, "index": 10000})

        assert response.status_code == 200
        body = response.json()
        assert body["state"] == "ready"
        assert body["index"] == 2
        assert body["episode_count"] == 3
        assert body["title"] == "Episode 3: Wrap Up"
        assert body["message"] == "Episode 3: Wrap Up"
        assert body["audio_url"] == EP3_URL
        assert body["has_previous"] is True
        assert body["has_next"] is False

    def test_default_index_is_oldest(self, client):
        """Test that the default index is the oldest episode."""
        body = client.get("/api/player", params={"rssfeed": FEED_URL}).json()
        assert body["index"] == 0
        assert body["title"] == "Episode 1: Introduction"
        assert body["has_previous"] is False

    def test_empty_feed_is_loading(self, client):
        """Test that a feed without episodes reports the loading notice."""
        body = client.get("/api/player", params={"rssfeed": EMPTY_FEED_URL}).json()

        assert body["state"] == "loading"
        assert body["message"] == "Loading episodes..."
        assert body["title"] is None
        assert body["audio_url"] is None

    def test_missing_feed_is_loading(self, client, web_app):
        """Test that a missing rssfeed parameter stays loading without a fetch."""
        body = client.get("/api/player").json()

        assert body["state"] == "loading"
        assert web_app.state.http_calls == []


class TestDownloadEndpoint:
    """Tests for POST /api/episodes/download and the cache listing."""

    def test_download_then_play_locally(self, client, web_app):
        """Test that a downloaded episode is served from the cache."""
        response = client.post(
            "/api/episodes/download",
            json={"url": EP3_URL, "title": "Episode 3: Wrap Up"},
        )

        assert response.status_code == 200
        assert response.json() == {
            "url": EP3_URL,
            "downloaded": True,
            "message": '"Episode 3: Wrap Up" downloaded for offline playback!',
        }

        body = client.get("/api/player", params={"rssfeed": FEED_URL, "index": 10000}).json()
        assert body["audio_url"] == f"/api/cache/audio?url={quote(EP3_URL, safe='')}"

        audio = client.get(body["audio_url"])
        assert audio.status_code == 200
        assert audio.content == WEB_ROUTES[EP3_URL][1]
        assert audio.headers["content-type"] == "audio/mpeg"

    def test_repeat_download_is_not_refetched(self, client, web_app):
        """Test that downloading twice fetches the audio once."""
        client.post("/api/episodes/download", json={"url": EP3_URL})
        response = client.post("/api/episodes/download", json={"url": EP3_URL})

        assert response.json()["downloaded"] is False
        assert web_app.state.http_calls.count(EP3_URL) == 1

    def test_cache_inventory(self, client):
        """Test listing cached episode urls."""
        assert client.get("/api/cache").json() == {"urls": [], "count": 0}

        client.post("/api/episodes/download", json={"url": EP3_URL})
        client.post("/api/episodes/download", json={"url": EP3_URL})

        assert client.get("/api/cache").json() == {"urls": [EP3_URL], "count": 1}

    def test_download_failure(self, client):
        """Test that an upstream failure is reported as a bad gateway."""
        response = client.post(
            "/api/episodes/download",
            json={"url": "https://example.com/missing.mp3"},
        )

        assert response.status_code == 502
        assert response.json()["detail"] == "Failed to download the episode."
        assert client.get("/api/cache").json()["count"] == 0

    def test_download_empty_url(self, client):
        """Test that an empty url is rejected."""
        response = client.post("/api/episodes/download", json={"url": ""})
        assert response.status_code == 400

    def test_uncached_audio_is_404(self, client):
        """Test that requesting audio that is not cached returns 404."""
        response = client.get("/api/cache/audio", params={"url": EP3_URL})
        assert response.status_code == 404

    def test_inventory_write_failure(self, client, web_app, tmp_path):
        """Test that a failed inventory write is reported like a failed download."""
        blocked = tmp_path / "blocked.json"
        blocked.mkdir()
        web_app.state.episode_cache = EpisodeCache(
            str(tmp_path / "blobs"),
            JsonFileStore(str(blocked)),
            http_client=make_http_client(WEB_ROUTES),
        )

        response = client.post("/api/episodes/download", json={"url": EP3_URL})

        assert response.status_code == 502
        assert response.json() == {"detail": "Failed to download the episode."}
