"""
FastAPI web application for the BingeCast podcast player.

Serves the feed proxy, the feed registry, player state resolution and the
offline episode cache over a JSON API.
"""

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from src.config import Config
from src.podcast.episode_cache import EpisodeCache
from src.podcast.feed_client import FeedClient
from src.podcast.registry import FeedRegistry
from src.storage.store import JsonFileStore
from src.web.proxy_routes import create_proxy_router
from src.web.feed_routes import router as feed_router
from src.web.player_routes import router as player_router

# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def cached_audio_reference(path: Path, url: str) -> str:
    """Playable reference for cached audio, served by the cache route."""
    return f"/api/cache/audio?url={quote(url, safe='')}"


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    FastAPI lifespan context manager.

    Handles startup logging and cleanup.
    """
    logger.info("Application started")

    yield

    logger.info("Application shutdown")


def create_app(config: Optional[Config] = None) -> FastAPI:
    """
    Build the FastAPI application and its services.

    Parameters:
        config (Config | None): Application configuration; loaded from the
            environment when omitted.

    Returns:
        FastAPI: App with config, registry, feed client and episode cache in
        `app.state`.
    """
    config = config or Config()

    store = JsonFileStore(config.store_path)
    feed_client = FeedClient(
        proxy_url=config.FEED_PROXY_URL,
        timeout=config.FEED_FETCH_TIMEOUT,
        user_agent=config.USER_AGENT,
    )
    registry = FeedRegistry(
        store=store,
        feed_client=feed_client,
        dedupe_on_add=config.REGISTRY_DEDUPE_ON_ADD,
    )
    registry.load()
    episode_cache = EpisodeCache(
        cache_directory=config.audio_cache_directory,
        store=store,
        user_agent=config.USER_AGENT,
        reference_builder=cached_audio_reference,
    )

    app = FastAPI(
        title="BingeCast",
        description="Podcast feed proxy, registry and offline player API",
        version="1.0.0",
        lifespan=lifespan
    )

    # Rate limiting for the feed proxy, one limiter per app
    limiter = Limiter(key_func=get_remote_address)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # CORS middleware (configurable via environment variable)
    allowed_origins = config.WEB_ALLOWED_ORIGINS.split(",") if config.WEB_ALLOWED_ORIGINS != "*" else ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Store services in app state for access in routes
    app.state.config = config
    app.state.store = store
    app.state.feed_client = feed_client
    app.state.registry = registry
    app.state.episode_cache = episode_cache

    app.include_router(create_proxy_router(limiter, config.WEB_PROXY_RATE_LIMIT))
    app.include_router(feed_router)
    app.include_router(player_router)

    @app.get("/health")
    async def health():
        """Health check endpoint for container orchestration."""
        return {"status": "healthy", "service": "bingecast"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=app.state.config.WEB_PORT)
