"""Named, bounded-wait mutual exclusion.

Used to serialize cache population per key. The in-memory gate is enough for
a single process; a multi-instance deployment needs a TTL-based distributed
lock behind the same interface.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from threading import Lock
from typing import Dict, Optional

from recordhub.errors import LockTimeoutError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Lease:
    key: str
    token: str = field(default_factory=lambda: uuid.uuid4().hex)
    acquired_at: float = field(default_factory=time.monotonic)


class NamedMutex:
    """Interface for a lock keyed by name."""

    def acquire(self, key: str, timeout: float) -> Lease:
        raise NotImplementedError

    def release(self, lease: Lease) -> None:
        raise NotImplementedError


class InMemoryNamedMutex(NamedMutex):
    def __init__(self) -> None:
        self._registry_lock = Lock()
        self._locks: Dict[str, Lock] = {}
        self._holders: Dict[str, str] = {}

    def _lock_for(self, key: str) -> Lock:
        with self._registry_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = Lock()
                self._locks[key] = lock
            return lock

    def acquire(self, key: str, timeout: float) -> Lease:
        lock = self._lock_for(key)
        if not lock.acquire(timeout=max(float(timeout), 0.0)):
            logger.warning("Lock wait timed out for %s after %ss", key, timeout)
            raise LockTimeoutError(key, timeout)
        lease = Lease(key=key)
        with self._registry_lock:
            self._holders[key] = lease.token
        return lease

    def release(self, lease: Lease) -> None:
        with self._registry_lock:
            if self._holders.get(lease.key) != lease.token:
                # Stale or repeated release; the lock belongs to someone else now.
                logger.warning("Ignoring release of a lease not holding %s", lease.key)
                return
            del self._holders[lease.key]
            lock = self._locks[lease.key]
        lock.release()

    def holder(self, key: str) -> Optional[str]:
        with self._registry_lock:
            return self._holders.get(key)
