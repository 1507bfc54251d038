"""
Caching Strategies

Each strategy serves one intercepted request and either produces a
response or propagates the network failure:

NETWORK-FIRST (API calls):
    network → on success store a copy in Dynamic (detached) and return it;
    on failure fall back to any cached match, else re-raise.

CACHE-FIRST (app-shell assets):
    cached match → return it without touching the network;
    otherwise network → store in Static (detached) → return.

STALE-WHILE-REVALIDATE (everything else):
    return the cached match immediately if there is one, refreshing Dynamic
    in the background; otherwise wait for the network. The caller is not
    told when it received stale data.

CRITICAL: Cache writes never block or fail the response they copy.
"""

from abc import ABC, abstractmethod
from typing import Optional

import httpx
import structlog

from money_tracker.models.cache import CachedResponse
from money_tracker.offline.classifier import RequestClassifier
from money_tracker.offline.storage import CacheStorage
from money_tracker.offline.tasks import BackgroundTasks


logger = structlog.get_logger(__name__)


async def fetch_from_network(
    network: httpx.AsyncBaseTransport,
    request: httpx.Request,
) -> tuple[httpx.Response, CachedResponse]:
    """
    Send ``request`` over ``network`` and read the raw body.

    Returns the live response (re-wrapped around the body bytes) and a
    copy suitable for storing.

    Raises:
        httpx.TransportError: If the network is unreachable
    """
    response = await network.handle_async_request(request)
    try:
        if response.is_stream_consumed:
            # Built in memory (content=...), body already loaded
            content = response.content
        else:
            content = b"".join([chunk async for chunk in response.aiter_raw()])
    finally:
        await response.aclose()

    live = httpx.Response(
        status_code=response.status_code,
        headers=response.headers.multi_items(),
        stream=httpx.ByteStream(content),
        request=request,
        extensions=response.extensions,
    )
    return live, CachedResponse.from_response(request, live, content)


class CachingStrategy(ABC):
    """Base class holding what every strategy shares."""

    def __init__(
        self,
        storage: CacheStorage,
        network: httpx.AsyncBaseTransport,
        tasks: BackgroundTasks,
        classifier: RequestClassifier,
        partition: str,
    ):
        self._storage = storage
        self._network = network
        self._tasks = tasks
        self._classifier = classifier
        self._partition = partition

    @property
    def partition(self) -> str:
        return self._partition

    async def _store(self, entry: CachedResponse) -> None:
        try:
            partition = await self._storage.open(self._partition)
            await partition.put(entry)
        except Exception as e:
            logger.warning(
                "cache_write_failed",
                partition=self._partition,
                url=entry.url,
                error=str(e),
            )

    def _store_in_background(self, request: httpx.Request, entry: CachedResponse) -> None:
        """Detached write of a successful, cacheable response."""
        if entry.ok and self._classifier.is_cacheable(request):
            self._tasks.spawn(self._store(entry), name=f"cache-put {entry.key}")

    @abstractmethod
    async def handle(self, request: httpx.Request) -> httpx.Response:
        pass


class NetworkFirstStrategy(CachingStrategy):

    async def handle(self, request: httpx.Request) -> httpx.Response:
        try:
            response, entry = await fetch_from_network(self._network, request)
        except httpx.TransportError as e:
            cached = await self._storage.match(request)
            if cached is not None:
                logger.info("network_failed_serving_cache", url=str(request.url), error=str(e))
                return cached.to_response(request)
            raise

        self._store_in_background(request, entry)
        return response


class CacheFirstStrategy(CachingStrategy):

    async def handle(self, request: httpx.Request) -> httpx.Response:
        cached = await self._storage.match(request)
        if cached is not None:
            return cached.to_response(request)

        response, entry = await fetch_from_network(self._network, request)
        self._store_in_background(request, entry)
        return response


class StaleWhileRevalidateStrategy(CachingStrategy):

    async def _revalidate(
        self,
        request: httpx.Request,
        cached: Optional[CachedResponse],
    ) -> httpx.Response:
        try:
            response, entry = await fetch_from_network(self._network, request)
        except httpx.TransportError as e:
            logger.info("network_request_failed", url=str(request.url), error=str(e))
            if cached is None:
                raise
            return cached.to_response(request)

        self._store_in_background(request, entry)
        return response

    async def handle(self, request: httpx.Request) -> httpx.Response:
        cached = await self._storage.match(request)
        if cached is None:
            return await self._revalidate(request, None)

        self._tasks.spawn(
            self._revalidate(request, cached),
            name=f"revalidate {request.method} {request.url}",
        )
        return cached.to_response(request)
