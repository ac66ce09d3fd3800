"""Tests for the availability cache."""

import asyncio
from datetime import date, datetime, timedelta

import pytest

from stieregg.models.availability import BookedRange
from stieregg.services.cache_service import AvailabilityCache
from stieregg.utils.clock import FrozenClock

RANGES = [BookedRange(start=date(2025, 8, 1), end=date(2025, 8, 5))]


class CountingLoader:
    """Async loader recording every call."""

    def __init__(self, result=None, error: Exception | None = None):
        self.result = result if result is not None else RANGES
        self.error = error
        self.calls: list[list[str]] = []
        self.gate: asyncio.Event | None = None

    async def __call__(self, urls: list[str]) -> list[BookedRange]:
        self.calls.append(urls)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return list(self.result)


@pytest.fixture
def clock():
    return FrozenClock(datetime(2025, 7, 1, 12, 0))


@pytest.fixture
def loader():
    return CountingLoader()


@pytest.fixture
def cache(loader, clock):
    return AvailabilityCache(loader, ttl=timedelta(minutes=30), clock=clock)


# =============================================================================
# Cache Key
# =============================================================================


def test_cache_key_ignores_order_and_duplicates():
    key = AvailabilityCache.cache_key(["https://b.test", "https://a.test"])

    assert key == AvailabilityCache.cache_key(["https://a.test", "https://b.test", "https://a.test"])
    assert key != AvailabilityCache.cache_key(["https://a.test"])


# =============================================================================
# TTL Behaviour
# =============================================================================


@pytest.mark.asyncio
async def test_second_request_is_served_from_cache(cache, loader):
    first = await cache.get_booked_ranges(["https://a.test", "https://b.test"])
    second = await cache.get_booked_ranges(["https://b.test", "https://a.test"])

    assert first == second == RANGES
    assert len(loader.calls) == 1
    assert cache.get_cache_stats()["hits"] == 1


@pytest.mark.asyncio
async def test_entry_served_until_ttl_boundary(cache, loader, clock):
    await cache.get_booked_ranges(["https://a.test"])
    clock.advance(timedelta(minutes=30))
    await cache.get_booked_ranges(["https://a.test"])

    assert len(loader.calls) == 1


@pytest.mark.asyncio
async def test_expired_entry_is_refreshed(cache, loader, clock):
    await cache.get_booked_ranges(["https://a.test"])
    clock.advance(timedelta(minutes=30, seconds=1))
    loader.result = []

    assert await cache.get_booked_ranges(["https://a.test"]) == []
    assert len(loader.calls) == 2


@pytest.mark.asyncio
async def test_empty_url_list_skips_loader(cache, loader):
    assert await cache.get_booked_ranges([]) == []
    assert loader.calls == []


@pytest.mark.asyncio
async def test_loader_receives_deduplicated_urls(cache, loader):
    await cache.get_booked_ranges(["https://b.test", "https://a.test", "https://b.test"])

    assert loader.calls == [["https://a.test", "https://b.test"]]


@pytest.mark.asyncio
async def test_failed_load_is_not_cached(clock):
    loader = CountingLoader(error=RuntimeError("feed exploded"))
    cache = AvailabilityCache(loader, clock=clock)

    with pytest.raises(RuntimeError):
        await cache.get_booked_ranges(["https://a.test"])

    loader.error = None
    assert await cache.get_booked_ranges(["https://a.test"]) == RANGES
    assert len(loader.calls) == 2


@pytest.mark.asyncio
async def test_returned_list_is_a_copy(cache):
    first = await cache.get_booked_ranges(["https://a.test"])
    first.clear()

    assert await cache.get_booked_ranges(["https://a.test"]) == RANGES


# =============================================================================
# Concurrency
# =============================================================================


@pytest.mark.asyncio
async def test_concurrent_requests_share_one_load(cache, loader):
    loader.gate = asyncio.Event()

    tasks = [asyncio.create_task(cache.get_booked_ranges(["https://a.test"])) for _ in range(5)]
    await asyncio.sleep(0)
    assert cache.get_cache_stats()["inflight"] == 1

    loader.gate.set()
    results = await asyncio.gather(*tasks)

    assert all(result == RANGES for result in results)
    assert len(loader.calls) == 1
    assert cache.get_cache_stats()["inflight"] == 0


@pytest.mark.asyncio
async def test_cancelled_waiter_does_not_cancel_shared_load(cache, loader):
    loader.gate = asyncio.Event()

    first = asyncio.create_task(cache.get_booked_ranges(["https://a.test"]))
    second = asyncio.create_task(cache.get_booked_ranges(["https://a.test"]))
    await asyncio.sleep(0)

    first.cancel()
    loader.gate.set()

    assert await second == RANGES
    with pytest.raises(asyncio.CancelledError):
        await first


# =============================================================================
# Stats & Clearing
# =============================================================================


@pytest.mark.asyncio
async def test_clear_cache_forces_reload(cache, loader):
    await cache.get_booked_ranges(["https://a.test"])
    cache.clear_cache(["https://a.test"])
    await cache.get_booked_ranges(["https://a.test"])

    assert len(loader.calls) == 2


@pytest.mark.asyncio
async def test_cache_stats(cache, clock):
    await cache.get_booked_ranges(["https://a.test"])
    clock.advance(timedelta(hours=1))

    stats = cache.get_cache_stats()

    assert stats["entries"] == 1
    assert stats["expired_entries"] == 1
    assert stats["ttl_seconds"] == 1800
