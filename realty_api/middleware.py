"""
ASGI middleware that caches successful GET responses under the API prefix.

Anonymous GET requests are keyed by method plus path and query string. A
fresh entry is replayed verbatim without touching the route handler; on a
miss the handler runs behind a recording ``send`` wrapper and its body is
stored once the last chunk goes out, provided the status is 2xx.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from starlette.datastructures import Headers, MutableHeaders
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from .cache import CacheStore
from .ttl_policy import TtlPolicy

logger = logging.getLogger(__name__)

CACHE_STATUS_HEADER = "X-Cache"


@dataclass(frozen=True)
class CachedResponse:
    """Response pieces needed to replay a cached hit."""

    body: bytes
    content_type: str | None
    status_code: int


def build_cache_key(scope: Scope) -> str:
    """Return ``"<METHOD>:<path>[?<query>]"`` for an HTTP scope."""
    url = scope["path"]
    query_string = scope.get("query_string", b"")
    if query_string:
        url = f"{url}?{query_string.decode('latin-1')}"
    return f"{scope['method']}:{url}"


@dataclass
class _RecordingSend:
    """
    Wraps the server ``send`` callable for one request.

    Adds the miss headers to the response start message, collects body
    chunks and writes a 2xx response into the store before the final chunk
    is forwarded.
    """

    send: Send
    store: CacheStore
    key: str
    ttl_seconds: float
    status_code: int = 0
    content_type: str | None = None
    chunks: list[bytes] = field(default_factory=list)

    async def __call__(self, message: Message) -> None:
        if message["type"] == "http.response.start":
            self.status_code = message["status"]
            headers = MutableHeaders(scope=message)
            headers[CACHE_STATUS_HEADER] = "MISS"
            headers["Cache-Control"] = f"public, max-age={int(self.ttl_seconds)}"
            self.content_type = headers.get("content-type")
        elif message["type"] == "http.response.body":
            self.chunks.append(message.get("body", b""))
            if not message.get("more_body", False):
                self._store_if_successful()
        await self.send(message)

    def _store_if_successful(self) -> None:
        if not 200 <= self.status_code < 300:
            logger.debug("Not caching %s (status %s)", self.key, self.status_code)
            return
        self.store.set(
            self.key,
            CachedResponse(
                body=b"".join(self.chunks),
                content_type=self.content_type,
                status_code=self.status_code,
            ),
            self.ttl_seconds,
        )
        logger.debug("Cached %s for %.0fs", self.key, self.ttl_seconds)


class ResponseCacheMiddleware:
    """
    Serve repeated anonymous GET requests from a CacheStore.

    Requests outside ``api_prefix``, non-GET requests and requests carrying
    an Authorization header go straight to the app and are neither served
    from nor written to the cache. Concurrent misses for the same key each
    run the handler; the last write wins.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        store: CacheStore,
        policy: TtlPolicy,
        api_prefix: str = "/api",
    ) -> None:
        self.app = app
        self.store = store
        self.policy = policy
        self.api_prefix = api_prefix

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or not self._is_cacheable(scope):
            await self.app(scope, receive, send)
            return

        key = build_cache_key(scope)
        cached = self.store.get(key)
        if cached is not None:
            logger.debug("Cache hit for %s", key)
            response = Response(
                content=cached.body,
                status_code=cached.status_code,
                headers={CACHE_STATUS_HEADER: "HIT"},
                media_type=cached.content_type,
            )
            await response(scope, receive, send)
            return

        ttl_seconds = self.policy.resolve(scope["path"])
        logger.debug("Cache miss for %s (ttl=%.0fs)", key, ttl_seconds)
        recorder = _RecordingSend(send=send, store=self.store, key=key, ttl_seconds=ttl_seconds)
        await self.app(scope, receive, recorder)

    def _is_cacheable(self, scope: Scope) -> bool:
        if scope["method"] != "GET":
            return False
        if not scope["path"].startswith(self.api_prefix):
            return False
        if "authorization" in Headers(scope=scope):
            logger.debug("Bypassing cache for authenticated request to %s", scope["path"])
            return False
        return True


__all__ = ["CachedResponse", "ResponseCacheMiddleware", "build_cache_key", "CACHE_STATUS_HEADER"]
