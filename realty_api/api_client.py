"""Async HTTP client for the Realty API with client-side response caching."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlencode

import aiohttp

from .cache import CacheStore
from .config_loader import config

_MISSING = object()


class ApiRequestError(Exception):
    """Raised when the API cannot be reached or answers with an error status."""

    def __init__(self, status: int, detail: str):
        super().__init__(f"{status}: {detail}")
        self.status = status
        self.detail = detail


def _clean_params(params: dict[str, Any] | None) -> dict[str, str]:
    if not params:
        return {}
    return {name: str(value) for name, value in params.items() if value is not None}


class ListingsApiClient:
    """
    Encapsulates Realty API calls for consumers such as DataFetcher.

    GET responses are kept in a CacheStore keyed by path and query string,
    so repeated reads within the TTL never leave the process. The store can
    be shared with a DataFetchingContext.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        store: CacheStore | None = None,
        timeout_seconds: float | None = None,
        cache_ttl_seconds: float | None = None,
        logger: logging.Logger | None = None,
    ):
        self.base_url = (base_url or config.api_base_url).rstrip("/")
        self.timeout_seconds = timeout_seconds or config.client_timeout
        self.cache_ttl_seconds = cache_ttl_seconds or config.client_cache_ttl
        self.store = store if store is not None else CacheStore(
            default_ttl_seconds=self.cache_ttl_seconds
        )
        self.logger = logger or logging.getLogger(self.__class__.__module__)

    @staticmethod
    def build_cache_key(path: str, params: dict[str, Any] | None = None) -> str:
        query = urlencode(_clean_params(params))
        return f"{path}?{query}" if query else path

    async def cached_get(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        cache: bool = True,
        cache_ttl: float | None = None,
        cache_key: str | None = None,
    ) -> Any:
        """
        GET ``path`` and return the decoded JSON body, using the cache when allowed.

        Args:
            path: API path relative to the base URL, e.g. ``/api/properties``
            params: Query parameters; ``None`` values are dropped
            cache: Read from and write to the cache (default True)
            cache_ttl: Lifetime of the stored response; client default when omitted
            cache_key: Explicit key; defaults to path plus query string

        Raises:
            ApiRequestError: On error statuses, timeouts or connection failures
        """
        key = cache_key or self.build_cache_key(path, params)
        if cache:
            cached = self.store.get(key, _MISSING)
            if cached is not _MISSING:
                self.logger.debug("Serving %s from client cache", key)
                return cached

        payload = await self._get_json(path, _clean_params(params))

        if cache:
            self.store.set(key, payload, cache_ttl or self.cache_ttl_seconds)
        return payload

    def invalidate_cache(self, cache_key: str) -> None:
        self.store.remove(cache_key)

    def clear_cache(self) -> None:
        self.store.clear()

    async def list_properties(self, **filters: Any) -> list[dict[str, Any]]:
        return await self.cached_get("/api/properties", params=filters)

    async def featured_properties(self) -> list[dict[str, Any]]:
        return await self.cached_get("/api/properties/featured")

    async def get_property(self, property_id: int) -> dict[str, Any]:
        return await self.cached_get(f"/api/properties/{property_id}")

    async def list_blog_posts(self) -> list[dict[str, Any]]:
        return await self.cached_get("/api/blog")

    async def list_developers(self) -> list[dict[str, Any]]:
        return await self.cached_get("/api/developers")

    async def list_team(self) -> list[dict[str, Any]]:
        return await self.cached_get("/api/team")

    async def _get_json(self, path: str, params: dict[str, str]) -> Any:
        """Execute a GET request against the API and return the parsed JSON body."""
        async with aiohttp.ClientSession() as session:
            try:
                async with session.get(
                    f"{self.base_url}{path}",
                    params=params,
                    timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
                ) as response:
                    if response.status >= 400:
                        error_text = await response.text()
                        self.logger.error(
                            "API returned %s for %s: %s", response.status, path, error_text[:500]
                        )
                        raise ApiRequestError(
                            response.status,
                            f"Request to {path} failed with status {response.status}",
                        )
                    return await response.json()
            except TimeoutError as exc:
                raise ApiRequestError(504, f"Timeout requesting {path}") from exc
            except aiohttp.ClientError as exc:
                self.logger.error("API connection error: %s", exc)
                raise ApiRequestError(503, "Cannot connect to the Realty API") from exc


__all__ = ["ApiRequestError", "ListingsApiClient"]
