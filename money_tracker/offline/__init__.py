"""Offline cache (service-worker layer) package."""

from money_tracker.offline.classifier import RequestClassifier
from money_tracker.offline.manager import CacheInstallError, OfflineCacheManager
from money_tracker.offline.storage import (
    CachePartition,
    CacheStorage,
    DiskCacheStorage,
    MemoryCacheStorage,
)
from money_tracker.offline.strategies import (
    CacheFirstStrategy,
    CachingStrategy,
    NetworkFirstStrategy,
    StaleWhileRevalidateStrategy,
)
from money_tracker.offline.tasks import BackgroundTasks
from money_tracker.offline.transport import CachingTransport

__all__ = [
    "BackgroundTasks",
    "CacheFirstStrategy",
    "CacheInstallError",
    "CachePartition",
    "CacheStorage",
    "CachingStrategy",
    "CachingTransport",
    "DiskCacheStorage",
    "MemoryCacheStorage",
    "NetworkFirstStrategy",
    "OfflineCacheManager",
    "RequestClassifier",
    "StaleWhileRevalidateStrategy",
]
