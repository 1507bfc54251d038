"""
Tests for the three caching strategies.

The network is an httpx.MockTransport whose behaviour each test controls;
going "offline" makes it raise httpx.ConnectError.
"""

import httpx
import pytest

from money_tracker.config import OfflineCacheSettings
from money_tracker.models.cache import CachedResponse
from money_tracker.offline import MemoryCacheStorage, OfflineCacheManager


APP = "http://localhost:8080"
API_URL = "https://test-project.supabase.co/rest/v1/expenses"


class FakeNetwork:
    """Serves fixed bodies per URL and counts requests."""

    def __init__(self):
        self.online = True
        self.bodies: dict[str, bytes] = {}
        self.status = 200
        self.calls: list[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(f"{request.method} {request.url}")
        if not self.online:
            raise httpx.ConnectError("network unreachable", request=request)
        return httpx.Response(self.status, content=self.bodies.get(str(request.url), b"fresh"))

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


class FailingWriteStorage(MemoryCacheStorage):
    """Partitions cannot be opened, so every cache write fails."""

    async def open(self, name):
        raise OSError("disk full")


@pytest.fixture
def network():
    return FakeNetwork()


@pytest.fixture
def storage():
    return MemoryCacheStorage()


@pytest.fixture
def manager(network, storage):
    return OfflineCacheManager(
        network=network.transport(),
        storage=storage,
        settings=OfflineCacheSettings(),
    )


async def _seed(storage, partition, url, content):
    bucket = await storage.open(partition)
    await bucket.put(CachedResponse(url=url, status_code=200, content=content))


async def _cached_body(storage, partition, url):
    bucket = await storage.open(partition)
    entry = await bucket.match(httpx.Request("GET", url))
    return entry.content if entry else None


class TestNetworkFirst:

    @pytest.mark.asyncio
    async def test_success_returns_live_response_and_stores_copy(self, manager, network, storage):
        network.bodies[API_URL] = b'[{"id": 1}]'
        response = await manager.on_fetch(httpx.Request("GET", API_URL))
        assert response.status_code == 200
        assert await response.aread() == b'[{"id": 1}]'

        await manager.wait_for_background()
        assert await _cached_body(storage, "dynamic-v1", API_URL) == b'[{"id": 1}]'

    @pytest.mark.asyncio
    async def test_error_status_is_not_stored(self, manager, network, storage):
        network.status = 500
        response = await manager.on_fetch(httpx.Request("GET", API_URL))
        assert response.status_code == 500

        await manager.wait_for_background()
        assert await storage.keys() == []

    @pytest.mark.asyncio
    async def test_offline_falls_back_to_cache(self, manager, network, storage):
        await _seed(storage, "dynamic-v1", API_URL, b"cached rows")
        network.online = False

        response = await manager.on_fetch(httpx.Request("GET", API_URL))
        assert await response.aread() == b"cached rows"
        assert response.extensions["from_cache"] is True

    @pytest.mark.asyncio
    async def test_offline_without_cache_propagates(self, manager, network):
        network.online = False
        with pytest.raises(httpx.ConnectError):
            await manager.on_fetch(httpx.Request("GET", API_URL))

    @pytest.mark.asyncio
    async def test_cache_write_failure_does_not_affect_response(self, network):
        manager = OfflineCacheManager(
            network=network.transport(),
            storage=FailingWriteStorage(),
            settings=OfflineCacheSettings(),
        )
        response = await manager.on_fetch(httpx.Request("GET", API_URL))
        assert response.status_code == 200
        await manager.wait_for_background()


class TestCacheFirst:

    @pytest.mark.asyncio
    async def test_hit_skips_network(self, manager, network, storage):
        url = f"{APP}/manifest.json"
        await _seed(storage, "static-v1", url, b"{}")

        response = await manager.on_fetch(httpx.Request("GET", url))
        assert await response.aread() == b"{}"
        assert network.calls == []

    @pytest.mark.asyncio
    async def test_miss_fetches_and_stores_in_static(self, manager, network, storage):
        url = f"{APP}/index.html"
        network.bodies[url] = b"<html>app</html>"

        response = await manager.on_fetch(httpx.Request("GET", url))
        assert await response.aread() == b"<html>app</html>"

        await manager.wait_for_background()
        assert await _cached_body(storage, "static-v1", url) == b"<html>app</html>"

    @pytest.mark.asyncio
    async def test_cached_asset_served_offline(self, manager, network, storage):
        url = f"{APP}/icons/icon-192x192.png"
        await _seed(storage, "static-v1", url, b"png-bytes")
        network.online = False

        response = await manager.on_fetch(httpx.Request("GET", url))
        assert response.status_code == 200
        assert await response.aread() == b"png-bytes"

    @pytest.mark.asyncio
    async def test_miss_offline_propagates(self, manager, network):
        network.online = False
        with pytest.raises(httpx.ConnectError):
            await manager.on_fetch(httpx.Request("GET", f"{APP}/index.html"))


class TestStaleWhileRevalidate:

    @pytest.mark.asyncio
    async def test_returns_cached_then_refreshes_in_background(self, manager, network, storage):
        url = f"{APP}/assets/app.js"
        await _seed(storage, "dynamic-v1", url, b"old")
        network.bodies[url] = b"new"

        response = await manager.on_fetch(httpx.Request("GET", url))
        assert await response.aread() == b"old"

        await manager.wait_for_background()
        assert await _cached_body(storage, "dynamic-v1", url) == b"new"

    @pytest.mark.asyncio
    async def test_miss_waits_for_network_and_stores(self, manager, network, storage):
        url = f"{APP}/assets/app.css"
        network.bodies[url] = b"body{}"

        response = await manager.on_fetch(httpx.Request("GET", url))
        assert await response.aread() == b"body{}"

        await manager.wait_for_background()
        assert await _cached_body(storage, "dynamic-v1", url) == b"body{}"

    @pytest.mark.asyncio
    async def test_failed_revalidation_keeps_cached_entry(self, manager, network, storage):
        url = f"{APP}/assets/app.js"
        await _seed(storage, "dynamic-v1", url, b"old")
        network.online = False

        response = await manager.on_fetch(httpx.Request("GET", url))
        assert await response.aread() == b"old"

        await manager.wait_for_background()
        assert await _cached_body(storage, "dynamic-v1", url) == b"old"

    @pytest.mark.asyncio
    async def test_miss_offline_propagates(self, manager, network):
        network.online = False
        with pytest.raises(httpx.ConnectError):
            await manager.on_fetch(httpx.Request("GET", f"{APP}/assets/app.js"))


class TestPassthrough:

    @pytest.mark.asyncio
    async def test_post_never_touches_cache(self, manager, network, storage):
        request = httpx.Request("POST", f"{APP}/api/x", json={"a": 1})
        response = await manager.on_fetch(request)
        assert response.status_code == 200

        await manager.wait_for_background()
        assert await storage.keys() == []
        assert network.calls == [f"POST {APP}/api/x"]

    @pytest.mark.asyncio
    async def test_post_offline_has_no_fallback(self, manager, network, storage):
        await _seed(storage, "dynamic-v1", f"{APP}/api/x", b"cached")
        network.online = False
        with pytest.raises(httpx.ConnectError):
            await manager.on_fetch(httpx.Request("POST", f"{APP}/api/x"))
