"""API routes for the feed registry: subscribing, removing and recent views.

Provides endpoints for:
- Listing, adding and removing subscribed feeds
- Listing and recording recently viewed feeds
"""

import logging

from fastapi import APIRouter, HTTPException, Request

from src.podcast.errors import InputValidationError, PodcastError
from src.web.models import (
    AddFeedRequest,
    FeedListResponse,
    FeedModel,
    RemoveFeedResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["feeds"])

SAVE_FAILED_DETAIL = "Failed to save your feeds. Please try again."


def _feed_list(feeds) -> FeedListResponse:
    return FeedListResponse(
        feeds=[FeedModel.from_feed(f) for f in feeds],
        count=len(feeds),
    )


@router.get("/feeds", response_model=FeedListResponse)
async def list_feeds(request: Request):
    """List subscribed feeds in the order they were added."""
    return _feed_list(request.app.state.registry.feeds)


@router.post("/feeds", response_model=FeedModel, status_code=201)
async def add_feed(request: Request, body: AddFeedRequest):
    """
    Subscribe to a feed by its RSS URL.

    The feed's metadata is fetched first; nothing is stored if that fails.

    Args:
        body: Request containing the feed URL

    Returns:
        FeedModel with the podcast title and artwork
    """
    registry = request.app.state.registry

    try:
        result = await registry.add_feed(body.url)
    except InputValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except PodcastError as e:
        logger.error(f"Error saving feed {body.url}: {e}")
        raise HTTPException(status_code=500, detail=SAVE_FAILED_DETAIL) from e

    if not result.ok:
        raise HTTPException(
            status_code=422,
            detail="Failed to fetch RSS feed. Please check the URL.",
        )

    return FeedModel.from_feed(result.feed)


@router.delete("/feeds", response_model=RemoveFeedResponse)
async def remove_feed(request: Request, url: str):
    """Remove every subscription entry for `url`."""
    try:
        removed = await request.app.state.registry.remove_feed(url)
    except PodcastError as e:
        logger.error(f"Error removing feed {url}: {e}")
        raise HTTPException(status_code=500, detail=SAVE_FAILED_DETAIL) from e
    return RemoveFeedResponse(url=url, removed=removed)


@router.get("/recent", response_model=FeedListResponse)
async def list_recently_viewed(request: Request):
    """List recently viewed feeds, most recent first."""
    return _feed_list(request.app.state.registry.recently_viewed)


@router.post("/recent", response_model=FeedListResponse)
async def record_view(request: Request, body: FeedModel):
    """Move a feed to the front of the recently viewed list."""
    registry = request.app.state.registry
    try:
        await registry.record_view(body.to_feed())
    except PodcastError as e:
        logger.error(f"Error recording view of {body.url}: {e}")
        raise HTTPException(status_code=500, detail=SAVE_FAILED_DETAIL) from e
    return _feed_list(registry.recently_viewed)
