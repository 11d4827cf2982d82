"""Response cache keyed by request fingerprint, with TTL expiry."""

from __future__ import annotations

import hashlib
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Optional

from resilient_llm.models import CacheConfig, CacheStats

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """A single cached model response.

    Args:
        response: The completion text
        timestamp: Instant the response was stored
        access_count: Number of hits served from this entry
    """

    response: str
    timestamp: float
    access_count: int = 0


def fingerprint(text: str) -> str:
    """Compute a deterministic short key for a request.

    Args:
        text: Request text to hash

    Returns:
        Hex digest cache key
    """
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:16]


class ResponseCache:
    """Maps request fingerprints to responses with a time-to-live.

    Expiry is lazy: ``get`` treats an entry older than the TTL as absent but
    leaves it in place. Expired entries are removed only by ``sweep`` or, when
    ``max_entries`` is set, by LRU eviction on ``put``.
    """

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the response cache.

        Args:
            config: Cache configuration (uses defaults if not provided)
            clock: Source of the current time in seconds
        """
        self.config = config or CacheConfig()
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._stats = CacheStats()

        logger.info(
            f"ResponseCache initialized: ttl={self.config.ttl_seconds}s, "
            f"max_entries={self.config.max_entries or 'unbounded'}"
        )

    @property
    def size(self) -> int:
        """Number of stored entries, expired ones included."""
        return len(self._entries)

    @property
    def stats(self) -> CacheStats:
        """Get current cache statistics."""
        self._stats.size = len(self._entries)
        return self._stats

    def get(self, key: str) -> Optional[str]:
        """Look up a cached response.

        Args:
            key: Request fingerprint

        Returns:
            The cached response, or None on a miss or an expired entry
        """
        entry = self._entries.get(key)
        if entry is None or not self._is_fresh(entry):
            self._stats.misses += 1
            logger.debug(f"Cache miss: key={key}")
            return None

        entry.access_count += 1
        self._entries.move_to_end(key)
        self._stats.hits += 1
        logger.info(f"Cache hit: key={key}")
        return entry.response

    def put(self, key: str, response: str) -> None:
        """Store a response, replacing any previous entry for the key.

        Args:
            key: Request fingerprint
            response: Completion text to cache
        """
        self._entries[key] = CacheEntry(response=response, timestamp=self._clock())
        self._entries.move_to_end(key)

        max_entries = self.config.max_entries
        while max_entries and len(self._entries) > max_entries:
            oldest_key, _ = self._entries.popitem(last=False)
            self._stats.evictions += 1
            logger.debug(f"Evicted LRU entry: key={oldest_key}")

    def contains_raw(self, key: str) -> bool:
        """Whether an entry is stored for the key, regardless of freshness."""
        return key in self._entries

    def sweep(self) -> int:
        """Remove every expired entry.

        Returns:
            Number of entries removed
        """
        expired = [k for k, e in self._entries.items() if not self._is_fresh(e)]
        for key in expired:
            del self._entries[key]
        self._stats.evictions += len(expired)
        if expired:
            logger.info(f"Swept {len(expired)} expired cache entries")
        return len(expired)

    def clear(self) -> None:
        """Clear all cache entries."""
        count = len(self._entries)
        self._entries.clear()
        logger.info(f"Cache cleared: {count} entries removed")

    def _is_fresh(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.timestamp < self.config.ttl_seconds
