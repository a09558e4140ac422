"""Local persistence for feed collections."""

from .store import (
    FEEDS_KEY,
    OFFLINE_EPISODES_KEY,
    RECENTLY_VIEWED_KEY,
    CollectionStore,
    InMemoryStore,
    JsonFileStore,
)

__all__ = [
    "CollectionStore",
    "InMemoryStore",
    "JsonFileStore",
    "FEEDS_KEY",
    "RECENTLY_VIEWED_KEY",
    "OFFLINE_EPISODES_KEY",
]
