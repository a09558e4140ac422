"""Offline audio cache keyed by episode URL.

Downloaded audio is stored as one blob per URL under a fixed cache
namespace directory. The blob directory is authoritative; an inventory
of cached URLs is mirrored into the collection store for listing.
"""

import asyncio
import hashlib
import logging
import os
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Callable, Dict, List, Optional

import httpx

from ..storage.store import OFFLINE_EPISODES_KEY, CollectionStore
from .errors import CacheError, InputValidationError, NetworkError

logger = logging.getLogger(__name__)


def file_uri_reference(path: Path, url: str) -> str:
    """Default local reference: a file:// URI for the cached blob."""
    return path.resolve().as_uri()


class EpisodeCache:
    """Content-addressable (by URL) store of downloaded episode audio.

    Example:
        cache = EpisodeCache("/var/lib/bingecast/audio-cache", store)
        await cache.ensure_cached(episode.audio_url)
        src = cache.resolve_playable_url(episode.audio_url)
    """

    DEFAULT_USER_AGENT = "BingeCast/1.0"
    DEFAULT_CHUNK_SIZE = 8192
    DEFAULT_TIMEOUT = 300  # 5 minutes
    BLOB_SUFFIX = ".audio"

    def __init__(
        self,
        cache_directory: str,
        store: CollectionStore,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        user_agent: Optional[str] = None,
        reference_builder: Optional[Callable[[Path, str], str]] = None,
    ):
        """Initialize the episode cache.

        Args:
            cache_directory: Directory holding cached blobs
            store: Collection store for the cached-URL inventory
            http_client: Shared httpx client; one is created per download if omitted
            timeout: Download timeout in seconds
            chunk_size: Chunk size for streaming downloads
            user_agent: Custom user agent string
            reference_builder: Maps (blob path, original url) to the playable
                reference handed out for cached episodes
        """
        self.cache_directory = Path(cache_directory)
        self.store = store
        self.timeout = timeout
        self.chunk_size = chunk_size
        self.user_agent = user_agent or self.DEFAULT_USER_AGENT
        self.reference_builder = reference_builder or file_uri_reference
        self._http_client = http_client
        self._locks: Dict[str, asyncio.Lock] = {}
        # Tasks holding or waiting on each url lock
        self._lock_users: Dict[str, int] = {}

    def _blob_path(self, url: str) -> Path:
        digest = hashlib.sha256(url.encode("utf-8")).hexdigest()
        return self.cache_directory / f"{digest}{self.BLOB_SUFFIX}"

    def is_cached(self, url: str) -> bool:
        """Check whether audio for `url` is in the cache."""
        return bool(url) and self._blob_path(url).is_file()

    def open_cached(self, url: str) -> Path:
        """
        Return the blob path for a cached url.

        Raises:
            CacheError: If the url is not cached.
        """
        path = self._blob_path(url)
        if not path.is_file():
            raise CacheError(f"Not cached: {url}")
        return path

    def inventory(self) -> List[str]:
        """URLs recorded as cached, in insertion order."""
        return [u for u in self.store.get_collection(OFFLINE_EPISODES_KEY) if isinstance(u, str)]

    async def ensure_cached(self, url: str) -> bool:
        """Download and store the audio for `url` unless it is already cached.

        Returns:
            True if a download happened, False if the url was already cached

        Raises:
            InputValidationError: If `url` is empty
            NetworkError: If the download fails or returns a non-2xx status
            CacheError: If the blob or its inventory entry cannot be written
        """
        if not url:
            raise InputValidationError("Episode has no audio URL")

        lock = self._locks.setdefault(url, asyncio.Lock())
        self._lock_users[url] = self._lock_users.get(url, 0) + 1
        try:
            async with lock:
                if self.is_cached(url):
                    logger.debug(f"Already cached: {url}")
                    return False

                logger.info(f"Caching audio: {url}")
                await self._download(url, self._blob_path(url))
                self._add_to_inventory(url)
                return True
        finally:
            self._release_lock(url)

    def _release_lock(self, url: str) -> None:
        self._lock_users[url] -= 1
        if not self._lock_users[url]:
            del self._lock_users[url]
            del self._locks[url]

    def resolve_playable_url(self, url: str) -> str:
        """Return a local reference for cached audio, else `url` unchanged.

        Cache failures are logged and fall back to the network url.
        """
        if not url:
            return url
        try:
            if self.is_cached(url):
                return self.reference_builder(self.open_cached(url), url)
        except Exception as e:
            logger.error(f"Error retrieving audio URL for {url}: {e}")
        return url

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            headers={"User-Agent": self.user_agent},
        ) as client:
            yield client

    async def _download(self, url: str, output_path: Path) -> None:
        try:
            self.cache_directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.cache_directory, suffix=".part")
        except OSError as e:
            raise CacheError(f"Cannot write to audio cache: {e}") from e

        try:
            with os.fdopen(fd, "wb") as f:
                async with self._client() as client:
                    async with client.stream("GET", url) as response:
                        if not response.is_success:
                            raise NetworkError(
                                f"Failed to download audio. HTTP Status: {response.status_code}",
                                status_code=response.status_code,
                            )
                        async for chunk in response.aiter_bytes(self.chunk_size):
                            f.write(chunk)
            os.replace(tmp_path, output_path)
        except httpx.HTTPError as e:
            self._discard(tmp_path)
            raise NetworkError(f"Failed to download audio: {e}") from e
        except OSError as e:
            self._discard(tmp_path)
            raise CacheError(f"Failed to store audio: {e}") from e
        except BaseException:
            self._discard(tmp_path)
            raise

    @staticmethod
    def _discard(tmp_path: str) -> None:
        try:
            os.remove(tmp_path)
        except FileNotFoundError:
            pass

    def _add_to_inventory(self, url: str) -> None:
        inventory = self.inventory()
        if url in inventory:
            return
        inventory.append(url)
        try:
            self.store.set_collection(OFFLINE_EPISODES_KEY, inventory)
        except OSError as e:
            raise CacheError(f"Failed to record cached episode: {e}") from e
