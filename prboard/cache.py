"""
In-memory response cache with per-entry expiry.

Entries self-expire: a read past the expiry time behaves as a miss and evicts
the entry. There is no size bound and no locking; one cache instance is meant
to be constructed per process and handed to the query executor.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from prboard.logging import get_logger, log_cache_access

logger = get_logger("cache")


@dataclass(frozen=True)
class CacheTTL:
    """Time-to-live per resource kind, in seconds."""

    pulls: int = 300
    labels: int = 600
    repos: int = 600


@dataclass
class CacheEntry:
    """A cached payload and its absolute expiry timestamp."""

    value: Any
    expires_at: float


class TTLCache:
    """Key/value store with per-entry expiry."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        """
        Initialize the cache.

        Args:
            clock: Returns the current time in seconds (default: time.time)
        """
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> Any | None:
        """
        Return the value stored under key, or None when absent or expired.

        Expired entries are evicted on read.
        """
        entry = self._entries.get(key)
        if entry is None:
            log_cache_access(key, hit=False)
            return None

        if self._clock() > entry.expires_at:
            del self._entries[key]
            log_cache_access(key, hit=False)
            return None

        log_cache_access(key, hit=True)
        return entry.value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store value under key for ttl_seconds, replacing any prior entry."""
        self._entries[key] = CacheEntry(
            value=value,
            expires_at=self._clock() + ttl_seconds,
        )

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def cleanup(self) -> int:
        """
        Evict every expired entry.

        get() evicts on read as well, so this only reclaims memory.

        Returns:
            Number of entries evicted
        """
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if now > entry.expires_at]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Evicted %d expired cache entries", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
