"""In-process TTL cache for read-heavy listings."""

import threading
import time
from typing import Any, Callable

import cachetools
import structlog

logger = structlog.get_logger(__name__)

_MISSING = object()


class ResponseCache:
    """Thin remember/forget wrapper over ``cachetools.TTLCache``.

    Each replica has its own cache, so a write only invalidates the copy on the
    pod that served it.
    """

    def __init__(self, ttl: float = 300, maxsize: int = 128, timer: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._store = cachetools.TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._store.get(key, default)

    def put(self, key: str, value: Any) -> None:
        with self._lock:
            self._store[key] = value

    def remember(self, key: str, factory: Callable[[], Any]) -> Any:
        """Return the cached value for ``key``, computing and storing it on a miss."""
        value = self.get(key, _MISSING)
        if value is not _MISSING:
            logger.debug("Cache hit", key=key)
            return value
        logger.debug("Cache miss", key=key)
        value = factory()
        self.put(key, value)
        return value

    def forget(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
