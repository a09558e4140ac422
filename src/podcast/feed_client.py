"""Feed fetching with soft-failure results.

Fetches feed documents either directly or through the feed proxy endpoint,
then hands them to FeedParser. Every failure is logged and turned into a
failed FeedResult (metadata) or an empty list (episodes).
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional, Union

import httpx

from .errors import FeedParseError, NetworkError
from .feed_parser import FeedParser
from .models import Episode, Feed, FeedResult

logger = logging.getLogger(__name__)


class FeedClient:
    """Client for loading podcast feed metadata and episode lists.

    Example:
        client = FeedClient(proxy_url="http://localhost:8080/api/fetch-rss")
        result = await client.fetch_metadata("https://example.com/feed.xml")
        if result.ok:
            print(result.feed.name)
    """

    DEFAULT_USER_AGENT = "BingeCast/1.0"
    DEFAULT_TIMEOUT = 30.0
    ACCEPT = "application/rss+xml, application/xml, text/xml, */*"

    def __init__(
        self,
        proxy_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        parser: Optional[FeedParser] = None,
    ):
        """Initialize the feed client.

        Args:
            proxy_url: Feed proxy endpoint; when empty feeds are fetched directly
            timeout: Request timeout in seconds
            user_agent: Custom user agent string
            http_client: Shared httpx client; one is created per request if omitted
            parser: Feed parser instance
        """
        self.proxy_url = proxy_url or None
        self.timeout = timeout
        self.user_agent = user_agent or self.DEFAULT_USER_AGENT
        self.parser = parser or FeedParser()
        self._http_client = http_client

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            headers={"User-Agent": self.user_agent, "Accept": self.ACCEPT},
        ) as client:
            yield client

    async def fetch_document(self, url: str) -> bytes:
        """Fetch the raw feed document as bytes.

        Bytes are handed to the XML parser undecoded so the document's own
        encoding declaration applies.

        Raises:
            NetworkError: On transport failure or a non-2xx response
        """
        if self.proxy_url:
            request_url, params = self.proxy_url, {"url": url}
        else:
            request_url, params = url, None

        try:
            async with self._client() as client:
                response = await client.get(request_url, params=params)
        except httpx.HTTPError as e:
            raise NetworkError(f"Failed to fetch RSS feed: {e}") from e

        if not response.is_success:
            raise NetworkError(
                f"Failed to fetch RSS feed. HTTP Status: {response.status_code}",
                status_code=response.status_code,
            )
        return response.content

    def metadata_from_text(self, url: str, content: Union[str, bytes]) -> FeedResult:
        """Build a metadata result from an already fetched document."""
        try:
            parsed = self.parser.parse_string(content)
        except FeedParseError as e:
            logger.error(f"Error parsing podcast metadata for {url}: {e}")
            return FeedResult.failure(url, str(e))
        return FeedResult.success(Feed(url=url, name=parsed.title, image=parsed.image_url))

    async def fetch_metadata(self, url: str) -> FeedResult:
        """Fetch a feed and extract its channel title and artwork.

        Returns:
            FeedResult; on any failure a failed result carrying the
            "Invalid Feed" placeholder
        """
        if not url:
            logger.error("RSS feed URL is empty.")
            return FeedResult.failure(url, "RSS feed URL is empty")

        try:
            content = await self.fetch_document(url)
        except Exception as e:
            logger.error(f"Error fetching podcast metadata for {url}: {e}")
            return FeedResult.failure(url, str(e))
        return self.metadata_from_text(url, content)

    async def fetch_episodes(self, url: str) -> List[Episode]:
        """Fetch a feed and return its episodes oldest first, or [] on failure."""
        if not url:
            logger.error("RSS feed URL is empty or undefined.")
            return []

        try:
            content = await self.fetch_document(url)
            parsed = self.parser.parse_string(content)
        except Exception as e:
            logger.error(f"Error fetching episodes for {url}: {e}")
            return []

        if not parsed.episodes:
            logger.warning(f"No episodes found in the RSS feed: {url}")
        return parsed.episodes
