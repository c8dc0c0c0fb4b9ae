"""
In-memory TTL store shared by the response cache middleware and the API client.

Entries carry their own expiry so different routes can live for different
amounts of time in the same store. Expiry is enforced lazily on every read;
the janitor only exists to bound memory between reads.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from cachetools import Cache, TLRUCache

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300.0


@dataclass(frozen=True)
class CacheEntry:
    """A stored payload together with its write and expiry timestamps."""

    key: str
    payload: Any
    stored_at: float
    expires_at: float

    def is_fresh(self, now: float) -> bool:
        return now < self.expires_at


def _entry_expiry(_key: str, entry: CacheEntry, _now: float) -> float:
    return entry.expires_at


class CacheStore:
    """
    Key to entry mapping with per-entry time-to-live.

    Backed by cachetools.TLRUCache so expiry ordering is tracked for us.
    There is no capacity limit: entries leave the store only by expiring,
    by ``remove`` or by ``clear``. No lock is taken; every method runs to
    completion without awaiting, so callers on one event loop never see a
    partially written entry.
    """

    def __init__(
        self,
        *,
        default_ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if default_ttl_seconds <= 0:
            raise ValueError("default_ttl_seconds must be > 0")
        self.default_ttl_seconds = float(default_ttl_seconds)
        self._clock = clock
        self._entries: TLRUCache[str, CacheEntry] = TLRUCache(
            maxsize=math.inf,
            ttu=_entry_expiry,
            timer=clock,
        )

    @property
    def clock(self) -> Callable[[], float]:
        return self._clock

    def set(self, key: str, payload: Any, ttl_seconds: float | None = None) -> CacheEntry:
        """
        Store ``payload`` under ``key``, replacing any previous entry.

        Args:
            key: Cache key derived from the request or supplied by the caller.
            payload: Value to store. It is kept as-is, never copied.
            ttl_seconds: Lifetime of the entry; the store default when omitted.

        Raises:
            ValueError: If the TTL is not strictly positive.
        """
        ttl = self.default_ttl_seconds if ttl_seconds is None else float(ttl_seconds)
        if ttl <= 0:
            raise ValueError(f"ttl_seconds must be > 0, got {ttl}")

        stored_at = self._clock()
        entry = CacheEntry(
            key=key,
            payload=payload,
            stored_at=stored_at,
            expires_at=stored_at + ttl,
        )
        # Drop the old entry first: TLRUCache silently skips writes whose
        # expiry is already behind the timer, which would leave it in place.
        self.remove(key)
        self._entries[key] = entry
        return entry

    def get(self, key: str, default: Any = None) -> Any:
        """Return the payload for ``key``, or ``default`` if absent or expired."""
        entry = self._lookup(key)
        if entry is None:
            return default
        return entry.payload

    def has(self, key: str) -> bool:
        """Check whether a fresh entry exists for ``key``."""
        return self._lookup(key) is not None

    def remove(self, key: str) -> None:
        try:
            del self._entries[key]
        except KeyError:
            pass

    def clear(self) -> None:
        self._entries.clear()

    def size(self) -> int:
        """Number of held entries, including expired ones not yet purged."""
        # TLRUCache.__len__ expires entries first; count the raw mapping instead.
        return Cache.__len__(self._entries)

    def purge_expired(self) -> int:
        """Remove every expired entry and return how many were dropped."""
        return len(self._entries.expire())

    def _lookup(self, key: str) -> CacheEntry | None:
        try:
            entry = self._entries.get(key)
            if entry is None:
                # Either never stored or expired; expire() drops stale entries
                # so they do not linger until the next sweep.
                self._entries.expire()
            return entry
        except Exception:  # noqa: BLE001 - a broken read must degrade to a miss
            logger.exception("Cache lookup failed for key=%s", key)
            return None

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)


__all__ = ["CacheEntry", "CacheStore", "DEFAULT_TTL_SECONDS"]
