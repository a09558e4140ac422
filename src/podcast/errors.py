"""Exception taxonomy for feed ingestion, caching and playback."""


class PodcastError(Exception):
    """Base class for all feed, cache and playback errors."""


class NetworkError(PodcastError):
    """Raised when a fetch fails or the upstream answers with a non-2xx status."""

    def __init__(self, message: str, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class FeedParseError(PodcastError):
    """Raised when feed text is not well-formed XML or has no channel."""


class InputValidationError(PodcastError, ValueError):
    """Raised for empty or missing required input."""


class CacheError(PodcastError):
    """Raised when the audio cache storage cannot be read or written."""
