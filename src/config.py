import os

from dotenv import load_dotenv


class Config:
    def __init__(self, env_file=None):
        """
        Initialize configuration by loading environment variables and setting default attributes.

        Loads environment variables from the provided .env file path when `env_file` is given; otherwise loads from the default environment. After loading, sets storage paths, feed fetching options, registry behaviour and web app settings using environment values with sensible defaults.
        Parameters:
            env_file (str | None): Optional path to a .env file to load environment variables from. If omitted, the default environment or default .env discovery is used.

        Raises:
            ValueError: If a numeric setting or the proxy URL is malformed.
        """
        if env_file:
            load_dotenv(env_file)
        else:
            load_dotenv()

        # Local data directory (collection store and audio cache live here)
        self.DATA_DIRECTORY = os.path.expanduser(
            os.getenv("DATA_DIRECTORY", "~/.bingecast")
        )
        self.STORE_FILENAME = os.getenv("STORE_FILENAME", "storage.json")

        # Audio cache namespace (directory under DATA_DIRECTORY)
        self.AUDIO_CACHE_NAME = os.getenv("AUDIO_CACHE_NAME", "audio-cache")

        # Feed fetching
        # Empty proxy URL means feeds are fetched directly
        feed_proxy_url = os.getenv("FEED_PROXY_URL", "")
        if feed_proxy_url and not feed_proxy_url.lower().startswith(("http://", "https://")):
            raise ValueError(
                f"FEED_PROXY_URL must start with http:// or https://, got: {feed_proxy_url}"
            )
        self.FEED_PROXY_URL = feed_proxy_url
        self.FEED_FETCH_TIMEOUT = float(os.getenv("FEED_FETCH_TIMEOUT", "30"))
        if self.FEED_FETCH_TIMEOUT <= 0:
            raise ValueError(
                f"FEED_FETCH_TIMEOUT must be positive, got {self.FEED_FETCH_TIMEOUT}"
            )
        self.USER_AGENT = os.getenv("USER_AGENT", "BingeCast/1.0")

        # Registry behaviour
        self.REGISTRY_DEDUPE_ON_ADD = (
            os.getenv("REGISTRY_DEDUPE_ON_ADD", "false").lower() == "true"
        )

        # Web application configuration
        self.WEB_ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*")
        self.WEB_PROXY_RATE_LIMIT = os.getenv("PROXY_RATE_LIMIT", "60/minute")
        self.WEB_PORT = int(os.getenv("PORT", "8080"))

    @property
    def store_path(self):
        '''Path of the JSON collection store.'''
        return os.path.join(self.DATA_DIRECTORY, self.STORE_FILENAME)

    @property
    def audio_cache_directory(self):
        '''Directory holding cached audio blobs.'''
        return os.path.join(self.DATA_DIRECTORY, self.AUDIO_CACHE_NAME)
