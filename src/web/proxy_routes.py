"""Feed proxy endpoint.

Relays a feed fetch to the public internet so browser clients can read
feeds hosted on other origins.
"""

import logging
from typing import AsyncIterator, Optional

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response
from slowapi import Limiter

from src.podcast.errors import NetworkError

logger = logging.getLogger(__name__)

DEFAULT_PROXY_RATE_LIMIT = "60/minute"


async def get_proxy_client(request: Request) -> AsyncIterator[httpx.AsyncClient]:
    """Yield an outbound HTTP client configured from app settings."""
    config = request.app.state.config
    async with httpx.AsyncClient(
        timeout=config.FEED_FETCH_TIMEOUT,
        follow_redirects=True,
        headers={"User-Agent": config.USER_AGENT},
    ) as client:
        yield client


def create_proxy_router(limiter: Limiter, rate_limit: Optional[str] = None) -> APIRouter:
    """
    Build the proxy router with its own per-client rate limit.

    Parameters:
        limiter (Limiter): The app's limiter; it must also be set as
            `app.state.limiter`.
        rate_limit (str | None): Limit string such as "60/minute"; the
            default is used when empty.

    Returns:
        APIRouter: Router exposing GET /api/fetch-rss.
    """
    router = APIRouter(prefix="/api", tags=["proxy"])

    @router.get("/fetch-rss")
    @limiter.limit(rate_limit or DEFAULT_PROXY_RATE_LIMIT)
    async def fetch_rss(
        request: Request,
        url: Optional[str] = None,
        client: httpx.AsyncClient = Depends(get_proxy_client),
    ):
        """
        Fetch an RSS feed server-side and return it verbatim.

        Args:
            url: Feed URL to fetch

        Returns:
            The feed body as application/xml, 400 if `url` is missing,
            or 500 if the upstream fetch fails or answers with a non-2xx status
        """
        if not url:
            return JSONResponse({"error": "RSS feed URL is required"}, status_code=400)

        try:
            response = await client.get(url)
            if not response.is_success:
                raise NetworkError(
                    f"Failed to fetch RSS feed. HTTP Status: {response.status_code}",
                    status_code=response.status_code,
                )
        except Exception as e:
            logger.error(f"Error fetching RSS feed {url}: {e}")
            return JSONResponse({"error": "Failed to fetch RSS feed"}, status_code=500)

        return Response(content=response.content, media_type="application/xml")

    return router
