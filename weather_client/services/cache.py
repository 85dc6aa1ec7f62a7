"""
ResponseCache - Async-compatible TTL cache for successful responses.

Features:
- Memory-based cache keyed by the canonical request URI
- Lazy expiry: an entry is treated as absent once its TTL has elapsed
- Oldest-entry eviction when the cache is full
- Async lock around every read and write
"""

import asyncio
from dataclasses import dataclass
from typing import Any

import httpx
from loguru import logger

from weather_client.services.clock import Clock, MonotonicClock
from weather_client.services.models import Response


@dataclass(frozen=True)
class CacheEntry:
    """A single cache entry. Replaced on refresh, never mutated."""

    key: str
    value: Response
    stored_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return self.expires_at <= now


class ResponseCache:
    """
    TTL cache in front of the resilience chain.

    Usage:
        cache = ResponseCache(default_ttl=30.0)

        key = cache.generate_key(url)
        response = await cache.get(key)
        if response is None:
            response = await fetch(url)
            await cache.set(key, response)
    """

    def __init__(
        self,
        default_ttl: float = 30.0,
        max_size: int = 100,
        clock: Clock | None = None,
        debug: bool = False,
    ):
        if default_ttl <= 0:
            raise ValueError("default_ttl must be positive")
        self._memory: dict[str, CacheEntry] = {}
        self._default_ttl = default_ttl
        self._max_size = max_size
        self._clock = clock or MonotonicClock()
        self._debug = debug
        self._lock = asyncio.Lock()
        self._stats = CacheStats()

    @property
    def default_ttl(self) -> float:
        return self._default_ttl

    @staticmethod
    def generate_key(url: str | httpx.URL) -> str:
        """Canonical string form of a request URI."""
        parsed = httpx.URL(url)
        if not parsed.path:
            parsed = parsed.copy_with(path="/")
        return str(parsed)

    async def get(self, key: str) -> Response | None:
        """Return the cached response, or None if missing or expired."""
        async with self._lock:
            entry = self._memory.get(key)
            if entry is None:
                self._stats.misses += 1
                self._log(f"MISS: {key[:50]}")
                return None

            if entry.is_expired(self._clock.now()):
                del self._memory[key]
                self._stats.misses += 1
                self._log(f"EXPIRED: {key[:50]}")
                return None

            self._stats.hits += 1
            self._log(f"HIT: {key[:50]}")
            return entry.value

    async def set(self, key: str, response: Response, ttl: float | None = None) -> None:
        """
        Store a successful response, overwriting any previous entry.

        Args:
            key: Cache key from generate_key()
            response: Response with a success status
            ttl: Time to live in seconds (uses default if not specified)
        """
        if not response.is_success:
            raise ValueError(
                f"Refusing to cache non-success response ({response.status_code})"
            )
        ttl = ttl if ttl is not None else self._default_ttl

        async with self._lock:
            now = self._clock.now()
            if len(self._memory) >= self._max_size and key not in self._memory:
                self._evict_oldest()

            self._memory[key] = CacheEntry(
                key=key,
                value=response,
                stored_at=now,
                expires_at=now + ttl,
            )
            self._log(f"SET: {key[:50]} (TTL: {ttl}s)")

    async def delete(self, key: str) -> bool:
        """Delete a specific key from cache."""
        async with self._lock:
            if key in self._memory:
                del self._memory[key]
                self._log(f"DELETE: {key[:50]}")
                return True
            return False

    async def clear(self) -> None:
        """Clear all cache entries."""
        async with self._lock:
            count = len(self._memory)
            self._memory.clear()
            self._log(f"CLEAR: {count} entries removed")

    async def cleanup_expired(self) -> int:
        """Remove all expired entries. Returns count of removed entries."""
        async with self._lock:
            now = self._clock.now()
            expired_keys = [k for k, v in self._memory.items() if v.is_expired(now)]
            for key in expired_keys:
                del self._memory[key]

            if expired_keys:
                self._log(f"CLEANUP: {len(expired_keys)} expired entries removed")

            return len(expired_keys)

    def _evict_oldest(self) -> None:
        """Evict the entry stored longest ago. Caller holds the lock."""
        if not self._memory:
            return

        oldest_key = min(
            self._memory.keys(),
            key=lambda k: self._memory[k].stored_at,
        )
        del self._memory[oldest_key]
        self._stats.evictions += 1
        self._log(f"EVICT: {oldest_key[:50]}")

    def get_stats(self) -> "CacheStats":
        """Get cache statistics."""
        self._stats.size = len(self._memory)
        self._stats.max_size = self._max_size
        return self._stats

    def _log(self, message: str) -> None:
        """Log debug message if debug mode is enabled."""
        if self._debug:
            logger.debug(f"[ResponseCache] {message}")


@dataclass
class CacheStats:
    """Cache statistics."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0
    size: int = 0
    max_size: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "size": self.size,
            "max_size": self.max_size,
            "hit_rate": f"{self.hit_rate:.2%}",
        }
