"""
Configuration and service setup for the recordhub application
"""

import os
from functools import lru_cache

from recordhub.cache import CacheStore, ReadThroughCache
from recordhub.locks import InMemoryNamedMutex
from recordhub.service import RecordService
from recordhub.store import MemoryTableStore, RemoteTableStore, TableStore


class Config:
    """Application configuration"""

    # API settings
    TITLE = "RecordHub API"
    DESCRIPTION = "Record-management dashboard backend with a read-through cache"
    VERSION = "1.0.0"
    DOCS_URL = "/docs"
    REDOC_URL = "/redoc"
    API_PATH = "/api"

    # CORS settings
    ALLOW_ORIGINS = ["*"]
    ALLOW_CREDENTIALS = True
    ALLOW_METHODS = ["*"]
    ALLOW_HEADERS = ["*"]

    # Server settings
    HOST = "0.0.0.0"
    PORT = 8000
    RELOAD = True

    # Cache settings
    CACHE_TTL_SECONDS = 300
    CACHE_MAXSIZE = 64
    LOCK_TIMEOUT_SECONDS = 30

    # Backing store; empty means an in-process store
    BACKEND_URL = os.getenv("RECORDHUB_BACKEND_URL", "")
    HTTP_TIMEOUT_SECONDS = 10

    # Client settings
    SYNC_REVERT_DELAY_SECONDS = 4


def get_store() -> TableStore:
    """Get the configured backing store"""
    return _get_cached_store()


@lru_cache(maxsize=1)
def _get_cached_store() -> TableStore:
    if Config.BACKEND_URL:
        return RemoteTableStore(Config.BACKEND_URL, timeout=Config.HTTP_TIMEOUT_SECONDS)
    return MemoryTableStore()


@lru_cache(maxsize=1)
def get_read_cache() -> ReadThroughCache:
    """One cache and lock gate per process, shared by every request."""
    return ReadThroughCache(
        CacheStore(maxsize=Config.CACHE_MAXSIZE),
        InMemoryNamedMutex(),
        ttl_seconds=Config.CACHE_TTL_SECONDS,
        lock_timeout=Config.LOCK_TIMEOUT_SECONDS,
    )


@lru_cache(maxsize=1)
def get_service() -> RecordService:
    return RecordService(get_store(), get_read_cache())
