"""
Offline Cache Models

A cached response is the stored "clone" of a network response: the raw
(still content-encoded) body bytes together with status and headers.
Keeping the raw body means a cached entry can be replayed through an
httpx client exactly like the live response it was copied from.
"""

import base64
from datetime import datetime
from enum import Enum
from typing import Any

import httpx
from pydantic import BaseModel, Field

from money_tracker.models.transaction import utcnow


class RequestClass(str, Enum):
    """How an intercepted request is served."""
    PASSTHROUGH = "passthrough"                    # Not cacheable, straight to network
    NETWORK_FIRST = "network_first"                # API calls
    CACHE_FIRST = "cache_first"                    # App-shell assets
    STALE_WHILE_REVALIDATE = "stale_while_revalidate"  # Everything else


def cache_key(method: str, url: str) -> str:
    """Request identity used to key cache entries."""
    return f"{method.upper()} {url}"


class CachedResponse(BaseModel):
    """A response stored in a cache partition."""

    method: str = Field(default="GET")
    url: str
    status_code: int = Field(ge=100, le=599)
    headers: list[tuple[str, str]] = Field(default_factory=list)
    content: bytes = b""
    stored_at: datetime = Field(default_factory=utcnow)

    @property
    def key(self) -> str:
        return cache_key(self.method, self.url)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @classmethod
    def from_response(
        cls,
        request: httpx.Request,
        response: httpx.Response,
        content: bytes,
    ) -> "CachedResponse":
        """Copy a network response whose raw body has already been read."""
        return cls(
            method=request.method,
            url=str(request.url),
            status_code=response.status_code,
            headers=response.headers.multi_items(),
            content=content,
        )

    def to_response(self, request: httpx.Request) -> httpx.Response:
        """Replay this entry as a fresh httpx response for ``request``."""
        return httpx.Response(
            status_code=self.status_code,
            headers=self.headers,
            stream=httpx.ByteStream(self.content),
            request=request,
            extensions={"from_cache": True},
        )

    def to_record(self) -> dict[str, Any]:
        """JSON-safe representation (body base64-encoded) for disk storage."""
        return {
            "method": self.method,
            "url": self.url,
            "status_code": self.status_code,
            "headers": [list(pair) for pair in self.headers],
            "content": base64.b64encode(self.content).decode("ascii"),
            "stored_at": self.stored_at.isoformat(),
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "CachedResponse":
        return cls(
            method=record["method"],
            url=record["url"],
            status_code=record["status_code"],
            headers=[tuple(pair) for pair in record.get("headers", [])],
            content=base64.b64decode(record.get("content", "")),
            stored_at=datetime.fromisoformat(record["stored_at"]),
        )
