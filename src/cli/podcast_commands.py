"""CLI commands for podcast management and playback.

Provides commands for:
- Adding and removing subscribed feeds
- Listing subscriptions and recently viewed feeds
- Listing a feed's episodes
- Stepping through a feed's episodes and caching them offline
- Running the web API
"""

import argparse
import asyncio
import logging
import sys
from typing import Callable

from ..config import Config
from ..player.controller import PlayerController, PlayerState
from ..podcast.episode_cache import EpisodeCache
from ..podcast.errors import InputValidationError, PodcastError
from ..podcast.feed_client import FeedClient
from ..podcast.registry import FeedRegistry
from ..storage.store import JsonFileStore

logger = logging.getLogger(__name__)

# Sentinel index meaning "latest episode"; clamped by the player
LATEST_EPISODE_INDEX = 10000

PLAY_HELP = "[n]ext  [p]revious  [d]ownload  [q]uit"


class Services:
    """Services wired from configuration for one CLI invocation."""

    def __init__(self, config: Config):
        self.store = JsonFileStore(config.store_path)
        self.feed_client = FeedClient(
            proxy_url=config.FEED_PROXY_URL,
            timeout=config.FEED_FETCH_TIMEOUT,
            user_agent=config.USER_AGENT,
        )
        self.registry = FeedRegistry(
            store=self.store,
            feed_client=self.feed_client,
            dedupe_on_add=config.REGISTRY_DEDUPE_ON_ADD,
        )
        self.registry.load()
        self.cache = EpisodeCache(
            cache_directory=config.audio_cache_directory,
            store=self.store,
            user_agent=config.USER_AGENT,
        )


def add_feed(args, config: Config):
    """Subscribe to the feed at args.url and print its title."""
    services = Services(config)

    try:
        result = asyncio.run(services.registry.add_feed(args.url))
    except InputValidationError as e:
        print(f"Error: {e}")
        sys.exit(1)
    except PodcastError as e:
        logger.error(f"Error saving feed {args.url}: {e}")
        print("Failed to save your feeds.")
        sys.exit(1)

    if not result.ok:
        print("Failed to fetch RSS feed. Please check the URL.")
        logger.debug(f"Add failed: {result.error}")
        sys.exit(1)

    print(f"Added: {result.feed.name}")
    if result.feed.image:
        print(f"  Artwork: {result.feed.image}")


def remove_feed(args, config: Config):
    """Remove all subscriptions for args.url."""
    services = Services(config)
    try:
        removed = asyncio.run(services.registry.remove_feed(args.url))
    except PodcastError as e:
        logger.error(f"Error removing feed {args.url}: {e}")
        print("Failed to save your feeds.")
        sys.exit(1)

    if removed:
        print(f"Removed {removed} entr{'y' if removed == 1 else 'ies'} for {args.url}")
    else:
        print(f"Not subscribed: {args.url}")


def list_feeds(args, config: Config):
    """Print subscribed feeds."""
    services = Services(config)
    feeds = services.registry.feeds

    if not feeds:
        print("No podcasts yet. Add one with: add <rss-url>")
        return

    print(f"\nYour Podcasts ({len(feeds)}):")
    for i, feed in enumerate(feeds, 1):
        print(f"  {i}. {feed.name}")
        print(f"     {feed.url}")


def list_recent(args, config: Config):
    """Print recently viewed feeds, most recent first."""
    services = Services(config)
    recent = services.registry.recently_viewed

    if not recent:
        print("Nothing viewed yet.")
        return

    print("\nRecently viewed:")
    for feed in recent:
        print(f"  - {feed.name}: {feed.url}")


def list_episodes(args, config: Config):
    """Print a feed's episodes, oldest first, marking cached ones."""
    services = Services(config)
    episodes = asyncio.run(services.feed_client.fetch_episodes(args.url))

    if not episodes:
        print("No episodes found.")
        return

    for i, episode in enumerate(episodes):
        marker = "*" if episode.audio_url and services.cache.is_cached(episode.audio_url) else " "
        print(f"{marker} [{i}] {episode.title}")
    print("\n* = available offline")


def _print_player(player: PlayerController):
    if player.state is PlayerState.LOADING:
        print(player.status_message)
        return
    print(f"\n[{player.index + 1}/{len(player.episodes)}] {player.current_episode.title}")
    print(f"  {player.audio_url or 'No audio available'}")


async def run_player(
    player: PlayerController,
    feed_url: str,
    index: int,
    interactive: bool,
    input_func: Callable[[str], str] = input,
) -> PlayerState:
    """
    Load a feed into the player and, if interactive, read navigation commands.

    Commands: n (next), p (previous), d (download current), q (quit).

    Returns:
        PlayerState: the player state after loading.
    """
    state = await player.load(feed_url, initial_index=index)
    _print_player(player)

    if not interactive or state is not PlayerState.READY:
        return state

    print(PLAY_HELP)
    while True:
        try:
            command = input_func("> ").strip().lower()
        except EOFError:
            break

        if command in ("q", "quit"):
            break
        elif command in ("n", "next"):
            if not player.next():
                print("Already at the latest episode.")
        elif command in ("p", "prev", "previous"):
            if not player.previous():
                print("Already at the first episode.")
        elif command in ("d", "download"):
            outcome = await player.download_current()
            print(outcome.message)
        else:
            print(PLAY_HELP)
            continue
        _print_player(player)

    return state


def play_feed(args, config: Config):
    """Resolve and step through a feed's episodes."""
    services = Services(config)
    player = PlayerController(services.feed_client, services.cache)

    async def _play():
        subscribed = next((f for f in services.registry.feeds if f.url == args.url), None)
        if subscribed:
            try:
                await services.registry.record_view(subscribed)
            except PodcastError as e:
                logger.warning(f"Could not record view of {args.url}: {e}")
        return await run_player(
            player,
            args.url,
            args.index,
            interactive=not args.no_interactive,
        )

    state = asyncio.run(_play())
    if state is not PlayerState.READY:
        sys.exit(1)


def download_episode(args, config: Config):
    """Cache the audio at args.url for offline playback."""
    services = Services(config)

    try:
        downloaded = asyncio.run(services.cache.ensure_cached(args.url))
    except PodcastError as e:
        logger.error(f"Error caching audio {args.url}: {e}")
        print("Failed to download the episode.")
        sys.exit(1)

    if downloaded:
        print(f"Downloaded for offline playback: {args.url}")
    else:
        print(f"Already available offline: {args.url}")


def list_cached(args, config: Config):
    """Print episode URLs available offline."""
    services = Services(config)
    urls = services.cache.inventory()

    if not urls:
        print("No episodes cached.")
        return

    print(f"\nOffline episodes ({len(urls)}):")
    for url in urls:
        print(f"  - {url}")


def serve(args, config: Config):
    """Run the web API with uvicorn."""
    import uvicorn

    from ..web.app import create_app

    uvicorn.run(create_app(config), host=args.host, port=args.port or config.WEB_PORT)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        description="BingeCast podcast CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--env-file",
        help="Path to .env file",
        default=None,
    )
    parser.add_argument(
        "-l",
        "--log-level",
        help="Set log level (DEBUG, INFO, WARNING, ERROR)",
        default="WARNING",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # add command
    add_parser = subparsers.add_parser(
        "add",
        help="Subscribe to a podcast by RSS feed URL",
    )
    add_parser.add_argument("url", help="RSS feed URL")

    # remove command
    remove_parser = subparsers.add_parser(
        "remove",
        help="Remove a subscribed podcast",
    )
    remove_parser.add_argument("url", help="RSS feed URL")

    # list command
    subparsers.add_parser(
        "list",
        help="List subscribed podcasts",
    )

    # recent command
    subparsers.add_parser(
        "recent",
        help="List recently viewed podcasts",
    )

    # episodes command
    episodes_parser = subparsers.add_parser(
        "episodes",
        help="List a feed's episodes, oldest first",
    )
    episodes_parser.add_argument("url", help="RSS feed URL")

    # play command
    play_parser = subparsers.add_parser(
        "play",
        help="Step through a feed's episodes",
    )
    play_parser.add_argument("url", help="RSS feed URL")
    play_parser.add_argument(
        "--index",
        type=int,
        default=0,
        help="Episode index to start at (oldest first)",
    )
    play_parser.add_argument(
        "--latest",
        dest="index",
        action="store_const",
        const=LATEST_EPISODE_INDEX,
        help="Start at the latest episode",
    )
    play_parser.add_argument(
        "--no-interactive",
        action="store_true",
        help="Print the selected episode and exit",
    )

    # download command
    download_parser = subparsers.add_parser(
        "download",
        help="Cache an episode's audio for offline playback",
    )
    download_parser.add_argument("url", help="Episode audio URL")

    # cached command
    subparsers.add_parser(
        "cached",
        help="List episodes available offline",
    )

    # serve command
    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the web API",
    )
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, help="Port (defaults to PORT)")

    return parser


def main():
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Load configuration
    config = Config(env_file=args.env_file)

    # Route to appropriate command
    commands = {
        "add": add_feed,
        "remove": remove_feed,
        "list": list_feeds,
        "recent": list_recent,
        "episodes": list_episodes,
        "play": play_feed,
        "download": download_episode,
        "cached": list_cached,
        "serve": serve,
    }

    command_func = commands.get(args.command)
    if command_func:
        command_func(args, config)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
