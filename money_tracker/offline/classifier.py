"""
Request Classification

Decides, from method and URL alone, how an intercepted request is served:

- PASSTHROUGH: not a GET, not http(s), or an excluded scheme. Goes
  straight to the network with no cache interaction and no fallback.
  Non-idempotent calls (e.g. the assistant's POSTs) land here even when
  their path looks like an API call.
- NETWORK_FIRST: API path prefix, or the remote backend's host.
- CACHE_FIRST: exact path match against the app-shell asset list.
- STALE_WHILE_REVALIDATE: everything else.
"""

import httpx

from money_tracker.config import OfflineCacheSettings
from money_tracker.models.cache import RequestClass


HTTP_SCHEMES = frozenset({"http", "https"})


class RequestClassifier:
    """Deterministic request → strategy routing."""

    def __init__(self, settings: OfflineCacheSettings):
        self._static_paths = frozenset(settings.static_assets_list)
        self._api_prefix = settings.api_path_prefix
        self._api_host_pattern = settings.api_host_pattern.lower()
        self._excluded_schemes = frozenset(settings.excluded_schemes_list)

    @property
    def static_paths(self) -> frozenset[str]:
        return self._static_paths

    def is_cacheable(self, request: httpx.Request) -> bool:
        """Only plain http(s) reads may touch the cache."""
        if request.method.upper() != "GET":
            return False
        scheme = request.url.scheme.lower()
        if scheme in self._excluded_schemes:
            return False
        return scheme in HTTP_SCHEMES

    def is_api(self, url: httpx.URL) -> bool:
        if self._api_prefix and url.path.startswith(self._api_prefix):
            return True
        return bool(self._api_host_pattern) and self._api_host_pattern in url.host.lower()

    def classify(self, request: httpx.Request) -> RequestClass:
        if not self.is_cacheable(request):
            return RequestClass.PASSTHROUGH
        if self.is_api(request.url):
            return RequestClass.NETWORK_FIRST
        if request.url.path in self._static_paths:
            return RequestClass.CACHE_FIRST
        return RequestClass.STALE_WHILE_REVALIDATE
