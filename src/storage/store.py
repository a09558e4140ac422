"""Collection storage for locally persisted lists.

Each key maps to a plain JSON list that is read and rewritten whole.
There is no versioning or migration; unreadable data is treated as empty.
"""

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from copy import deepcopy
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

# Collection keys
FEEDS_KEY = "rss_feeds"
RECENTLY_VIEWED_KEY = "recently_viewed"
OFFLINE_EPISODES_KEY = "offline_episodes"


class CollectionStore(ABC):
    """Abstract get/set interface for named collections."""

    @abstractmethod
    def get_collection(self, key: str) -> List[Any]:
        """
        Read the collection stored under `key`.

        Returns:
            The stored list, or an empty list if the key is absent or unreadable.
        """
        pass

    @abstractmethod
    def set_collection(self, key: str, items: List[Any]) -> None:
        """Replace the collection stored under `key` with `items`."""
        pass


class InMemoryStore(CollectionStore):
    """Store kept in a dict; used for tests and throwaway sessions."""

    def __init__(self, initial: Dict[str, Any] = None):
        self._data: Dict[str, Any] = deepcopy(initial) if initial else {}

    def get_collection(self, key: str) -> List[Any]:
        value = self._data.get(key)
        if not isinstance(value, list):
            return []
        return deepcopy(value)

    def set_collection(self, key: str, items: List[Any]) -> None:
        self._data[key] = deepcopy(list(items))


class JsonFileStore(CollectionStore):
    """Store backed by a single JSON object file.

    Writes go to a temporary file in the same directory followed by
    os.replace, so a crash never leaves a half-written file behind.
    """

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()

    def _read_all(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable store file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring store file {self.path}: top level is not an object")
            return {}
        return data

    def get_collection(self, key: str) -> List[Any]:
        with self._lock:
            value = self._read_all().get(key)
        if not isinstance(value, list):
            return []
        return value

    def set_collection(self, key: str, items: List[Any]) -> None:
        with self._lock:
            data = self._read_all()
            data[key] = list(items)

            directory = os.path.dirname(os.path.abspath(self.path))
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
