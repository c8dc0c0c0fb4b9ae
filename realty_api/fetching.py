"""
Cached, deduplicated data fetching for API consumers.

A DataFetchingContext owns one client-side CacheStore, the per-key record of
when a fetch was last started, and a bus of revalidation events. Fetchers
created from it wrap a zero-argument async callable and expose ``data``,
``loading`` and ``error`` the way a UI component would read them.

Repeat fetches of a key inside the deduping interval are suppressed. This
is a best-effort debounce, not a lock: two fetches straddling the interval
boundary may both run.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

from .cache import CacheStore
from .config_loader import Config
from .janitor import CacheJanitor
from .models import FetchOptions
from .service_base import BaseService

T = TypeVar("T")

_MISSING = object()

Listener = Callable[[], Awaitable[None]]


class FetchOutcome(str, enum.Enum):
    """How the most recent fetch call was satisfied."""

    FETCHED = "fetched"
    CACHED = "cached"
    DEDUPED = "deduped"
    FAILED = "failed"


class RevalidationEvents:
    """Focus and reconnect notifications that trigger refetches."""

    FOCUS = "focus"
    ONLINE = "online"

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {self.FOCUS: [], self.ONLINE: []}

    def subscribe(self, event: str, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for ``event``; returns a function that unsubscribes it."""
        listeners = self._listeners[event]
        listeners.append(listener)

        def unsubscribe() -> None:
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def listener_count(self, event: str) -> int:
        return len(self._listeners[event])

    async def emit(self, event: str) -> None:
        listeners = list(self._listeners[event])
        await asyncio.gather(*(listener() for listener in listeners))

    async def emit_focus(self) -> None:
        await self.emit(self.FOCUS)

    async def emit_online(self) -> None:
        await self.emit(self.ONLINE)


class DataFetchingContext(BaseService):
    """
    Shared state for every DataFetcher in one application instance.

    The last-fetch-started map is the dedupe window: a key is inside it
    while ``now - started < deduping_interval``. Only ``mark_fetch_started``
    adds to it; the janitor drops keys older than the longest interval in
    use. In-flight fetches are tracked so a deduped caller can wait for the
    outstanding result instead of starting another call.

    Used as an async context manager, it runs a janitor over its store.
    """

    def __init__(
        self,
        store: CacheStore | None = None,
        *,
        events: RevalidationEvents | None = None,
        default_options: FetchOptions | None = None,
        sweep_interval_seconds: float = 60,
        logger: logging.Logger | None = None,
    ):
        super().__init__(logger=logger)
        self.store = store if store is not None else CacheStore()
        self.events = events or RevalidationEvents()
        self.default_options = default_options or FetchOptions()
        self.janitor = _FetchJanitor(
            self,
            interval_seconds=sweep_interval_seconds,
            name="client",
            logger=self.logger,
        )
        self._last_fetch_started: dict[str, float] = {}
        self._longest_deduping_interval = self.default_options.deduping_interval
        self._in_flight: dict[str, asyncio.Future[Any]] = {}

    @classmethod
    def from_config(cls, settings: Config, store: CacheStore | None = None) -> DataFetchingContext:
        options = FetchOptions(
            cache_time=settings.fetch_cache_time,
            revalidate_on_focus=settings.fetch_revalidate_on_focus,
            revalidate_on_reconnect=settings.fetch_revalidate_on_reconnect,
            deduping_interval=settings.fetch_deduping_interval,
        )
        return cls(
            store=(
                store
                if store is not None
                else CacheStore(default_ttl_seconds=settings.client_cache_ttl)
            ),
            default_options=options,
            sweep_interval_seconds=settings.client_sweep_interval,
        )

    async def __aenter__(self) -> DataFetchingContext:
        await self.janitor.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.janitor.stop()

    def use_data_fetching(
        self,
        fetch_fn: Callable[[], Awaitable[T]],
        key: str,
        options: FetchOptions | None = None,
    ) -> DataFetcher[T]:
        """Create a fetcher for ``key``; call ``mount()`` on it to start loading."""
        options = options or self.default_options
        self._longest_deduping_interval = max(
            self._longest_deduping_interval, options.deduping_interval
        )
        return DataFetcher(self, fetch_fn, key, options)

    def last_fetch_started(self, key: str) -> float | None:
        return self._last_fetch_started.get(key)

    def within_dedupe_window(self, key: str, interval: float) -> bool:
        started = self._last_fetch_started.get(key)
        if started is None:
            return False
        return self.store.clock() - started < interval

    def mark_fetch_started(self, key: str) -> None:
        self._last_fetch_started[key] = self.store.clock()

    def forget_stale_fetches(self) -> int:
        """Drop dedupe timestamps that can no longer suppress any fetch."""
        now = self.store.clock()
        stale = [
            key
            for key, started in self._last_fetch_started.items()
            if now - started >= self._longest_deduping_interval and key not in self._in_flight
        ]
        for key in stale:
            del self._last_fetch_started[key]
        return len(stale)

    def in_flight(self, key: str) -> asyncio.Future[Any] | None:
        return self._in_flight.get(key)

    def start_fetch(self, key: str, fetch_fn: Callable[[], Awaitable[T]]) -> asyncio.Future[T]:
        """Schedule ``fetch_fn`` and track it as the in-flight fetch for ``key``."""
        self.mark_fetch_started(key)
        future = asyncio.ensure_future(fetch_fn())
        self._in_flight[key] = future

        def _forget(done: asyncio.Future[Any]) -> None:
            if self._in_flight.get(key) is done:
                del self._in_flight[key]

        future.add_done_callback(_forget)
        return future


class _FetchJanitor(CacheJanitor):
    """Client janitor that also prunes the context's dedupe timestamps."""

    def __init__(self, context: DataFetchingContext, **kwargs: Any):
        super().__init__(context.store, **kwargs)
        self.context = context

    def sweep(self) -> int:
        removed = super().sweep()
        forgotten = self.context.forget_stale_fetches()
        if forgotten:
            self.logger.debug("Forgot %s stale dedupe timestamps", forgotten)
        return removed


class DataFetcher(BaseService, Generic[T]):
    """
    Fetch state for one key, as seen by one consumer.

    ``mount()`` starts the first load and subscribes to revalidation
    events, ``refetch()`` always performs a live call, and ``unmount()``
    detaches the fetcher so late results no longer touch its state.
    Failures never raise out of these methods; they land in ``error`` while
    previously loaded ``data`` stays in place.
    """

    def __init__(
        self,
        context: DataFetchingContext,
        fetch_fn: Callable[[], Awaitable[T]],
        key: str,
        options: FetchOptions,
    ):
        super().__init__(logger=context.logger)
        self.context = context
        self.options = options
        self.data: T | None = None
        self.loading = False
        self.error: Exception | None = None
        self.outcome: FetchOutcome | None = None
        self._fetch_fn = fetch_fn
        self._key = key
        self._mounted = False
        self._detached = False
        self._unsubscribers: list[Callable[[], None]] = []

    @property
    def key(self) -> str:
        return self._key

    @property
    def mounted(self) -> bool:
        return self._mounted

    async def mount(self) -> None:
        if self._mounted:
            return
        self._mounted = True
        self._detached = False
        events = self.context.events
        if self.options.revalidate_on_focus:
            self._unsubscribers.append(events.subscribe(events.FOCUS, self.revalidate))
        if self.options.revalidate_on_reconnect:
            self._unsubscribers.append(events.subscribe(events.ONLINE, self.revalidate))
        await self._fetch()

    def unmount(self) -> None:
        self._mounted = False
        self._detached = True
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    async def set_key(self, key: str) -> None:
        """Switch to a new key and load it."""
        if key == self._key:
            return
        self._key = key
        self.outcome = None
        await self._fetch()

    async def revalidate(self) -> None:
        await self._fetch()

    async def refetch(self) -> None:
        """Perform a live call, ignoring both the cache and the dedupe window."""
        await self._fetch(force=True)

    async def _fetch(self, force: bool = False) -> None:
        key = self._key
        context = self.context

        if not force and context.within_dedupe_window(key, self.options.deduping_interval):
            await self._adopt_deduped(key)
            return

        if not force:
            cached = context.store.get(key, _MISSING)
            if cached is not _MISSING:
                if self._is_current(key):
                    self.data = cached
                    self.loading = False
                    self.error = None
                    self.outcome = FetchOutcome.CACHED
                return

        if self._is_current(key):
            self.loading = True
        future = context.start_fetch(key, self._fetch_fn)
        try:
            result = await future
        except Exception as exc:  # noqa: BLE001 - surfaced through self.error
            self.logger.warning("Fetch for %s failed: %s", key, exc)
            if self._is_current(key):
                self.error = exc
                self.outcome = FetchOutcome.FAILED
            return
        finally:
            if self._is_current(key):
                self.loading = False

        context.store.set(key, result, self.options.cache_time)
        if self._is_current(key):
            self.data = result
            self.error = None
            self.outcome = FetchOutcome.FETCHED

    async def _adopt_deduped(self, key: str) -> None:
        future = self.context.in_flight(key)
        if future is not None:
            await asyncio.wait({future})
            if (
                not future.cancelled()
                and future.exception() is None
                and self._is_current(key)
            ):
                self.data = future.result()
                self.error = None
        elif self.data is None:
            cached = self.context.store.get(key, _MISSING)
            if cached is not _MISSING and self._is_current(key):
                self.data = cached

        if self._is_current(key):
            self.outcome = FetchOutcome.DEDUPED

    def _is_current(self, key: str) -> bool:
        return not self._detached and key == self._key


__all__ = [
    "DataFetcher",
    "DataFetchingContext",
    "FetchOutcome",
    "RevalidationEvents",
]
