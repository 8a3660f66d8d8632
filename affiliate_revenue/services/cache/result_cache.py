"""
Client-side result cache.

In-process TTL cache for remote call results (RPCs, payment intent
lookups). Keys are built from the function name plus its parameters
serialized with sorted keys, so the same call always hits the same
entry regardless of argument order.

Dropping the cache never changes results, only latency.
"""

import json
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from loguru import logger

from affiliate_revenue.config.constants import (
    CACHE_SWEEP_INTERVAL_SECONDS,
    CACHE_TTL_DEFAULT,
    CACHE_TTL_FEE_OVERRIDES,
    CACHE_TTL_NOTIFICATIONS,
    CACHE_TTL_PROFILES,
    CACHE_TTL_STATIC,
)


# Substring -> TTL, checked in order; first match wins
TTL_RULES: tuple[tuple[tuple[str, ...], int], ...] = (
    (("override", "fee"), CACHE_TTL_FEE_OVERRIDES),
    (("notification",), CACHE_TTL_NOTIFICATIONS),
    (("profile",), CACHE_TTL_PROFILES),
    (("static", "reference", "system_type"), CACHE_TTL_STATIC),
)


@dataclass
class CacheEntry:
    """Cached value with absolute expiry (clock seconds)."""

    data: Any
    expires_at: float


def build_key(function_name: str, params: Any = None) -> str:
    """
    Build cache key for a function call.

    Example:
        >>> build_key("get_payment_dates_batch", {"p_user_ids": ["b", "a"]})
        'get_payment_dates_batch:{"p_user_ids": ["b", "a"]}'
    """
    return f"{function_name}:{json.dumps(params, sort_keys=True, default=str)}"


def default_ttl(function_name: str) -> int:
    """Default TTL in seconds for a function name."""
    name = function_name.lower()
    for needles, ttl in TTL_RULES:
        if any(needle in name for needle in needles):
            return ttl
    return CACHE_TTL_DEFAULT


class ResultCache:
    """
    Thread-safe in-memory TTL cache.

    Expired entries are dropped lazily on read; a full sweep runs at most
    once per `sweep_interval` seconds, piggybacking on writes.
    """

    def __init__(
        self,
        sweep_interval: float = CACHE_SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize cache.

        Args:
            sweep_interval: Minimum seconds between expiry sweeps
            clock: Monotonic clock returning seconds (injectable for tests)
        """
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._last_sweep = clock()
        self._hits = 0
        self._misses = 0

    def get(self, function_name: str, params: Any = None) -> Any | None:
        """
        Get cached value.

        Returns:
            Cached data, or None on miss or expiry
        """
        key = build_key(function_name, params)
        now = self._clock()

        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if entry.expires_at <= now:
                del self._entries[key]
                self._misses += 1
                return None
            self._hits += 1
            return entry.data

    def set(
        self,
        function_name: str,
        data: Any,
        params: Any = None,
        ttl: float | None = None,
    ) -> None:
        """
        Store value.

        Args:
            function_name: Remote function name (drives default TTL)
            data: Value to cache
            params: Call parameters
            ttl: Lifetime in seconds, default by function name
        """
        if ttl is None:
            ttl = default_ttl(function_name)
        key = build_key(function_name, params)
        now = self._clock()

        with self._lock:
            self._entries[key] = CacheEntry(data=data, expires_at=now + ttl)
            if now - self._last_sweep >= self._sweep_interval:
                self._sweep(now)

    def invalidate(self, function_name: str, params: Any = None) -> bool:
        """
        Drop a single entry.

        Returns:
            True if an entry was removed
        """
        key = build_key(function_name, params)
        with self._lock:
            return self._entries.pop(key, None) is not None

    def invalidate_prefix(self, prefix: str) -> int:
        """
        Drop every entry whose key starts with prefix.

        Passing a function name drops all parameter variants of it.

        Returns:
            Number of entries removed
        """
        with self._lock:
            keys = [key for key in self._entries if key.startswith(prefix)]
            for key in keys:
                del self._entries[key]

        if keys:
            logger.debug(f"Cache invalidated: {len(keys)} key(s) with prefix {prefix!r}")
        return len(keys)

    def clear(self) -> None:
        """Drop all entries and reset counters."""
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def stats(self) -> dict[str, int]:
        """Entry count and hit/miss counters."""
        with self._lock:
            return {
                "entries": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
            }

    def _sweep(self, now: float) -> None:
        """Remove expired entries. Caller holds the lock."""
        expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired:
            del self._entries[key]
        self._last_sweep = now
