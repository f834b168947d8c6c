"""
Methodology Cache

Injectable in-memory cache for objects that are expensive to build
(methodology philosophies, parsed adaptation patterns).

It is a pure performance layer: every component works the same with a
fresh cache, and tests pass their own instance so nothing leaks between
them.

Usage:
    cache = MethodologyCache(ttl_seconds=3600)

    philosophy = cache.get("philosophy:daniels")
    if philosophy is None:
        philosophy = build()
        cache.set("philosophy:daniels", philosophy)

    cache.evict("philosophy:daniels")
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


class MethodologyCache:
    """
    Key/value cache with optional per-entry TTL.
    """

    def __init__(
        self,
        ttl_seconds: Optional[int] = None,
        clock: Callable[[], datetime] = None,
    ):
        """
        Initialize cache.

        Args:
            ttl_seconds: Default TTL for entries (None = until evicted)
            clock: Time source, injectable for tests
        """
        self.ttl_seconds = ttl_seconds
        self._clock = clock or datetime.now
        self._local_cache: Dict[str, Any] = {}
        self._local_expiry: Dict[str, datetime] = {}
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None when missing or expired."""
        if key not in self._local_cache:
            self._misses += 1
            return None

        expiry = self._local_expiry.get(key)
        if expiry is not None and self._clock() >= expiry:
            logger.debug(f"Cache entry expired: {key}")
            self.evict(key)
            self._misses += 1
            return None

        self._hits += 1
        return self._local_cache[key]

    def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None):
        """Store a value. Falls back to the cache-wide TTL."""
        ttl = ttl_seconds if ttl_seconds is not None else self.ttl_seconds
        self._local_cache[key] = value
        if ttl is not None:
            self._local_expiry[key] = self._clock() + timedelta(seconds=ttl)
        else:
            self._local_expiry.pop(key, None)

    def get_or_create(self, key: str, factory: Callable[[], Any]) -> Any:
        """Return the cached value, building and storing it on a miss."""
        value = self.get(key)
        if value is None:
            value = factory()
            self.set(key, value)
        return value

    def evict(self, key: str) -> bool:
        """Remove one entry. Returns True if it existed."""
        existed = key in self._local_cache
        self._local_cache.pop(key, None)
        self._local_expiry.pop(key, None)
        return existed

    def clear(self):
        """Remove every entry and reset statistics."""
        self._local_cache.clear()
        self._local_expiry.clear()
        self._hits = 0
        self._misses = 0

    def __contains__(self, key: str) -> bool:
        if key not in self._local_cache:
            return False
        expiry = self._local_expiry.get(key)
        return expiry is None or self._clock() < expiry

    def __len__(self) -> int:
        return len(self._local_cache)

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        total = self._hits + self._misses
        return {
            "entries": len(self._local_cache),
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total, 3) if total else 0.0,
        }
