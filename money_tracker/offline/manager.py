"""
Offline Cache Manager

Plays the role of the app's service worker. A host (the httpx transport
in ``money_tracker.offline.transport``, or anything else that can
intercept HTTP) invokes one entry point per lifecycle event:

- on_install():  pre-populate the Static partition with the app shell
- on_activate(): delete every partition from an older version
- on_fetch(req): classify the request and serve it with its strategy

The manager never talks to the reconciliation engine; it only sees
requests and responses.
"""

from typing import Optional

import httpx
import structlog

from money_tracker.config import OfflineCacheSettings, get_settings
from money_tracker.models.cache import CachedResponse, RequestClass
from money_tracker.offline.classifier import RequestClassifier
from money_tracker.offline.storage import (
    CacheStorage,
    DiskCacheStorage,
    MemoryCacheStorage,
)
from money_tracker.offline.strategies import (
    CacheFirstStrategy,
    CachingStrategy,
    NetworkFirstStrategy,
    StaleWhileRevalidateStrategy,
    fetch_from_network,
)
from money_tracker.offline.tasks import BackgroundTasks


logger = structlog.get_logger(__name__)


class CacheInstallError(Exception):
    """An app-shell asset could not be fetched during install."""
    pass


class OfflineCacheManager:
    """
    Serves requests with availability under network loss.

    Two long-lived partitions exist per version: Static (app shell,
    cache-first) and Dynamic (API and other content). Bumping the version
    in settings and re-activating drops the previous generation.
    """

    def __init__(
        self,
        network: Optional[httpx.AsyncBaseTransport] = None,
        storage: Optional[CacheStorage] = None,
        settings: Optional[OfflineCacheSettings] = None,
    ):
        self._settings = settings or get_settings().offline_cache
        self._network = network or httpx.AsyncHTTPTransport()
        if storage is not None:
            self._storage = storage
        elif self._settings.storage_dir is not None:
            self._storage = DiskCacheStorage(self._settings.storage_dir)
        else:
            self._storage = MemoryCacheStorage()

        self._classifier = RequestClassifier(self._settings)
        self._tasks = BackgroundTasks()

        static = self._settings.static_partition
        dynamic = self._settings.dynamic_partition
        shared = (self._storage, self._network, self._tasks, self._classifier)
        self._strategies: dict[RequestClass, CachingStrategy] = {
            RequestClass.NETWORK_FIRST: NetworkFirstStrategy(*shared, partition=dynamic),
            RequestClass.CACHE_FIRST: CacheFirstStrategy(*shared, partition=static),
            RequestClass.STALE_WHILE_REVALIDATE: StaleWhileRevalidateStrategy(*shared, partition=dynamic),
        }

    @property
    def storage(self) -> CacheStorage:
        return self._storage

    @property
    def classifier(self) -> RequestClassifier:
        return self._classifier

    @property
    def static_partition(self) -> str:
        return self._settings.static_partition

    @property
    def dynamic_partition(self) -> str:
        return self._settings.dynamic_partition

    def strategy_for(self, request: httpx.Request) -> Optional[CachingStrategy]:
        """The strategy that would serve ``request`` (None = passthrough)."""
        return self._strategies.get(self._classifier.classify(request))

    # ------------------------------------------------------------------
    # Lifecycle events
    # ------------------------------------------------------------------

    async def on_install(self) -> bool:
        """
        Pre-populate the Static partition with every app-shell asset.

        All-or-nothing: if any asset fails, nothing is stored. Failure is
        logged and reported as False, never raised.
        """
        origin = httpx.URL(self._settings.app_origin)
        entries: list[CachedResponse] = []
        try:
            for path in self._settings.static_assets_list:
                request = httpx.Request("GET", origin.join(path))
                _, entry = await fetch_from_network(self._network, request)
                if not entry.ok:
                    raise CacheInstallError(f"{entry.url} returned HTTP {entry.status_code}")
                entries.append(entry)

            partition = await self._storage.open(self.static_partition)
            await partition.put_all(entries)
        except (httpx.TransportError, CacheInstallError, OSError) as e:
            logger.warning("cache_install_failed", partition=self.static_partition, error=str(e))
            return False

        logger.info("cache_installed", partition=self.static_partition, assets=len(entries))
        return True

    async def on_activate(self) -> list[str]:
        """
        Delete every partition that is not the current Static or Dynamic one.

        Returns:
            Names of the deleted partitions
        """
        current = {self.static_partition, self.dynamic_partition}
        deleted = []
        for name in await self._storage.keys():
            if name not in current:
                await self._storage.delete(name)
                deleted.append(name)

        logger.info("cache_activated", kept=sorted(current), deleted=deleted)
        return deleted

    async def on_fetch(self, request: httpx.Request) -> httpx.Response:
        """Serve one intercepted request."""
        strategy = self.strategy_for(request)
        if strategy is None:
            return await self._network.handle_async_request(request)
        return await strategy.handle(request)

    # ------------------------------------------------------------------
    # Housekeeping
    # ------------------------------------------------------------------

    async def wait_for_background(self) -> None:
        """Let pending cache writes and revalidations finish."""
        await self._tasks.drain()

    async def aclose(self) -> None:
        await self.wait_for_background()
        await self._network.aclose()
