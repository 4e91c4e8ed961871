"""
In-process TTL cache for upstream source results.

Provides:
    • TTL-aware get/set keyed by source + normalised parameters
    • Lazy eviction: an expired entry is deleted when it is read
    • Injectable clock so expiry is testable without sleeping

One instance is built at engine start-up and passed by reference to every
source client, so all sites in a batch share it. There is no locking:
concurrent writers to the same key overwrite each other, which is harmless
because they carry equivalent freshly fetched data.

Usage:
    from damwatch.core.cache import TTLCache, make_cache_key

    cache = TTLCache(ttl_seconds=600)
    key = make_cache_key("forecast", 21.83, 73.748, days=7)
    cache.set(key, result)
    cached = cache.get(key)      # None once 600 s have elapsed
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 600


@dataclass
class CacheEntry:
    key: str
    value: Any
    inserted_at: float


class TTLCache:
    """Key/value store whose entries expire ``ttl_seconds`` after insertion."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self.hits = 0
        self.misses = 0

    def _is_expired(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.inserted_at > self.ttl_seconds

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None on miss or expiry."""
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None
        if self._is_expired(entry):
            del self._entries[key]
            self.misses += 1
            logger.debug("Cache EXPIRED: %s", key)
            return None
        self.hits += 1
        return entry.value

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = CacheEntry(key=key, value=value, inserted_at=self._clock())

    @property
    def size(self) -> int:
        """Number of stored entries, including expired ones not yet read."""
        return len(self._entries)

    def __len__(self) -> int:
        return self.size

    def stats(self) -> Dict[str, Any]:
        return {
            "size": self.size,
            "ttl_seconds": self.ttl_seconds,
            "hits": self.hits,
            "misses": self.misses,
        }


def make_cache_key(source: str, latitude: float, longitude: float, **params: Any) -> str:
    """
    Deterministic cache key from a source name, coordinates and parameters.

    Parameters are sorted by name so keyword order never changes the key.
    """
    parts = [source, f"{latitude}", f"{longitude}"]
    parts.extend(f"{k}={params[k]}" for k in sorted(params))
    return ":".join(parts)
