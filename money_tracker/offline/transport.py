"""
httpx Host for the Offline Cache Manager

Any ``httpx.AsyncClient`` built on ``CachingTransport`` has every request
intercepted by the cache manager, the same way a browser routes page
fetches through a service worker.

Usage:
    transport = CachingTransport.create()
    await transport.manager.on_install()
    await transport.manager.on_activate()
    client = httpx.AsyncClient(transport=transport)
"""

from typing import Optional

import httpx

from money_tracker.config import OfflineCacheSettings
from money_tracker.offline.manager import OfflineCacheManager
from money_tracker.offline.storage import CacheStorage


class CachingTransport(httpx.AsyncBaseTransport):
    """Transport that hands every request to ``OfflineCacheManager.on_fetch``."""

    def __init__(self, manager: OfflineCacheManager):
        self._manager = manager

    @classmethod
    def create(
        cls,
        network: Optional[httpx.AsyncBaseTransport] = None,
        storage: Optional[CacheStorage] = None,
        settings: Optional[OfflineCacheSettings] = None,
    ) -> "CachingTransport":
        return cls(OfflineCacheManager(network=network, storage=storage, settings=settings))

    @property
    def manager(self) -> OfflineCacheManager:
        return self._manager

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        return await self._manager.on_fetch(request)

    async def aclose(self) -> None:
        await self._manager.aclose()
