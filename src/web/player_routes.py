"""API routes for playback and offline episode caching.

Provides endpoints for:
- Resolving the player state for a feed and episode index
- Downloading an episode into the offline cache
- Serving cached audio and listing the cache inventory
"""

import logging
import mimetypes
from typing import Optional
from urllib.parse import urlparse

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import FileResponse

from src.player.controller import PlayerController
from src.podcast.errors import CacheError, InputValidationError, PodcastError
from src.web.models import (
    CacheInventoryResponse,
    DownloadRequest,
    DownloadResponse,
    PlayerStateResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["player"])

DEFAULT_AUDIO_TYPE = "audio/mpeg"


@router.get("/player", response_model=PlayerStateResponse)
async def get_player(request: Request, rssfeed: Optional[str] = None, index: int = 0):
    """
    Load a feed and select an episode for playback.

    Args:
        rssfeed: Feed URL
        index: Episode index, oldest first; out-of-range values are clamped,
            so a large value such as 10000 selects the latest episode

    Returns:
        PlayerStateResponse; state is "loading" with a loading notice when
        the feed has no episodes
    """
    player = PlayerController(
        feed_client=request.app.state.feed_client,
        cache=request.app.state.episode_cache,
    )
    await player.load(rssfeed or "", initial_index=index)
    return PlayerStateResponse(**player.snapshot())


@router.post("/episodes/download", response_model=DownloadResponse)
async def download_episode(request: Request, body: DownloadRequest):
    """Cache an episode's audio for offline playback."""
    cache = request.app.state.episode_cache
    label = body.title or body.url

    try:
        downloaded = await cache.ensure_cached(body.url)
    except InputValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except PodcastError as e:
        logger.error(f"Error caching audio {body.url}: {e}")
        raise HTTPException(status_code=502, detail="Failed to download the episode.") from e

    return DownloadResponse(
        url=body.url,
        downloaded=downloaded,
        message=f'"{label}" downloaded for offline playback!',
    )


@router.get("/cache", response_model=CacheInventoryResponse)
async def list_cached(request: Request):
    """List episode URLs available offline."""
    urls = request.app.state.episode_cache.inventory()
    return CacheInventoryResponse(urls=urls, count=len(urls))


@router.get("/cache/audio")
async def get_cached_audio(request: Request, url: str):
    """Serve cached audio bytes for `url`."""
    try:
        path = request.app.state.episode_cache.open_cached(url)
    except CacheError as e:
        raise HTTPException(status_code=404, detail="Episode is not cached") from e

    media_type, _ = mimetypes.guess_type(urlparse(url).path)
    return FileResponse(path, media_type=media_type or DEFAULT_AUDIO_TYPE)
