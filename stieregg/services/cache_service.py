"""Availability cache service.

Caches merged booked ranges per set of calendar URLs so that repeated
page views do not hit the booking platforms on every request.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional

from stieregg.models.availability import BookedRange
from stieregg.utils.clock import Clock
from stieregg.utils.logger import get_logger

logger = get_logger(__name__)

RangeLoader = Callable[[list[str]], Awaitable[list[BookedRange]]]


@dataclass(frozen=True)
class CacheEntry:
    """Merged ranges for one URL set and the time they were fetched."""

    key: str
    value: tuple[BookedRange, ...]
    fetched_at: datetime

    def is_expired(self, now: datetime, ttl: timedelta) -> bool:
        return now - self.fetched_at > ttl


class AvailabilityCache:
    """
    Time-boxed cache for booked ranges.

    Entries are replaced wholesale on refresh, never patched. Requests
    for a key that is already being loaded wait for that load instead of
    starting another fetch.

    Usage:
        cache = AvailabilityCache(feeds.booked_ranges, ttl=timedelta(minutes=30))
        ranges = await cache.get_booked_ranges(apartment.calendar_urls)
    """

    CACHE_TTL = timedelta(minutes=30)
    KEY_PREFIX = "booked-ranges"

    def __init__(
        self,
        loader: RangeLoader,
        ttl: timedelta | None = None,
        clock: Clock | None = None,
    ):
        """
        Initialize cache.

        Args:
            loader: Async function fetching merged ranges for a URL list
            ttl: Maximum entry age (defaults to 30 minutes)
            clock: Time source for entry age
        """
        self.loader = loader
        self.ttl = ttl if ttl is not None else self.CACHE_TTL
        self.clock = clock or Clock()
        self._entries: dict[str, CacheEntry] = {}
        self._inflight: dict[str, asyncio.Task] = {}
        self._hits = 0
        self._misses = 0

    # =========================================================================
    # Public API
    # =========================================================================

    @classmethod
    def cache_key(cls, calendar_urls: list[str]) -> str:
        """Key for a URL set; order and duplicates do not matter."""
        return f"{cls.KEY_PREFIX}:" + "|".join(sorted(set(calendar_urls)))

    async def get_booked_ranges(self, calendar_urls: list[str]) -> list[BookedRange]:
        """
        Get merged ranges, loading them when missing or expired.

        Args:
            calendar_urls: Feed URLs of one apartment

        Returns:
            Normalized booked ranges

        Raises:
            Whatever the loader raises; failed loads are not cached.
        """
        if not calendar_urls:
            return []

        key = self.cache_key(calendar_urls)
        entry = self._entries.get(key)
        if entry is not None and not entry.is_expired(self.clock.now(), self.ttl):
            self._hits += 1
            return list(entry.value)

        self._misses += 1
        task = self._inflight.get(key)
        if task is None:
            urls = sorted(set(calendar_urls))
            task = asyncio.create_task(self._refresh(key, urls))
            self._inflight[key] = task
        else:
            logger.debug("availability_cache_join_inflight", key_size=len(calendar_urls))

        # shield: a cancelled caller must not cancel the load other callers wait on
        value = await asyncio.shield(task)
        return list(value)

    # =========================================================================
    # Cache Status
    # =========================================================================

    def get_cache_stats(self) -> dict:
        """Get cache statistics for monitoring."""
        now = self.clock.now()
        return {
            "entries": len(self._entries),
            "expired_entries": sum(
                1 for entry in self._entries.values() if entry.is_expired(now, self.ttl)
            ),
            "inflight": len(self._inflight),
            "hits": self._hits,
            "misses": self._misses,
            "ttl_seconds": int(self.ttl.total_seconds()),
        }

    def clear_cache(self, calendar_urls: Optional[list[str]] = None) -> None:
        """Clear one URL set, or everything (useful for testing or forced refresh)."""
        if calendar_urls:
            self._entries.pop(self.cache_key(calendar_urls), None)
        else:
            self._entries.clear()

    # =========================================================================
    # Private Methods
    # =========================================================================

    async def _refresh(self, key: str, calendar_urls: list[str]) -> tuple[BookedRange, ...]:
        try:
            value = tuple(await self.loader(calendar_urls))
            self._entries[key] = CacheEntry(key=key, value=value, fetched_at=self.clock.now())
            logger.info("availability_cache_refreshed", feeds=len(calendar_urls), ranges=len(value))
            return value
        finally:
            self._inflight.pop(key, None)
