"""Offline cache and push handling used by the web client."""

from .cache_worker import (
    CACHE_NAME,
    STATIC_ASSETS,
    CacheBucket,
    CachedResponse,
    CacheInstallError,
    CacheStorage,
    CacheWorker,
    OfflineCacheTransport,
    WorkerState,
    WorkerStateError,
)
from .push import NotificationOptions, PushMessage

__all__ = [
    "CACHE_NAME",
    "STATIC_ASSETS",
    "CacheBucket",
    "CacheInstallError",
    "CacheStorage",
    "CacheWorker",
    "CachedResponse",
    "NotificationOptions",
    "OfflineCacheTransport",
    "PushMessage",
    "WorkerState",
    "WorkerStateError",
]
