"""In-process TTL cache and the read-through layer built on it.

Reads against the backing store are expensive, so each collection is cached
under its own key. Population is serialized per key through a named mutex so
concurrent misses trigger a single fetch.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from threading import RLock
from typing import Any, Callable, Dict, Optional

from recordhub.errors import FetchError
from recordhub.locks import NamedMutex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    key: str
    payload: str
    expires_at: float


class CacheStore:
    def __init__(self, maxsize: int = 512, clock: Callable[[], float] = time.monotonic):
        self._maxsize = int(maxsize)
        self._clock = clock
        self._lock = RLock()
        self._data: Dict[str, CacheEntry] = {}

    def get(self, key: str) -> Optional[str]:
        now = self._clock()
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            if entry.expires_at <= now:
                self._data.pop(key, None)
                return None
            return entry.payload

    def put(self, key: str, payload: str, ttl_seconds: float) -> CacheEntry:
        now = self._clock()
        with self._lock:
            # purge expired
            expired_keys = [k for k, v in self._data.items() if v.expires_at <= now]
            for k in expired_keys:
                self._data.pop(k, None)

            # simple size cap
            while key not in self._data and len(self._data) >= self._maxsize:
                self._data.pop(next(iter(self._data)))

            entry = CacheEntry(key=key, payload=payload, expires_at=now + float(ttl_seconds))
            self._data[key] = entry
            return entry

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None


class ReadThroughCache:
    """Cache store plus mutual exclusion gate.

    ``get_or_populate`` returns the cached payload when present. On a miss it
    takes the gate for the key, checks again (another caller may have filled
    the entry while we waited) and only then calls ``fetch``. The gate is
    released on every exit path.
    """

    def __init__(
        self,
        store: CacheStore,
        gate: NamedMutex,
        ttl_seconds: float = 300,
        lock_timeout: float = 30,
    ):
        self.store = store
        self.gate = gate
        self.ttl_seconds = ttl_seconds
        self.lock_timeout = lock_timeout

    def get_or_populate(self, key: str, fetch: Callable[[], Any]) -> Any:
        cached = self.store.get(key)
        if cached is not None:
            logger.debug("Cache HIT for: %s", key)
            return json.loads(cached)

        lease = self.gate.acquire(key, self.lock_timeout)
        try:
            cached = self.store.get(key)
            if cached is not None:
                logger.debug("Cache HIT (after lock) for: %s", key)
                return json.loads(cached)

            logger.info("Cache MISS for: %s", key)
            try:
                data = fetch()
            except Exception as e:
                raise FetchError(f"Failed to load '{key}': {e}") from e

            serialized = json.dumps(data, default=str)
            self.store.put(key, serialized, self.ttl_seconds)
            return json.loads(serialized)
        finally:
            self.gate.release(lease)

    def invalidate(self, key: str) -> None:
        self.store.remove(key)
        logger.info("Cache cleared for: %s", key)
