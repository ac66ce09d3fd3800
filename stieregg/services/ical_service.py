"""iCal ingestion and merge engine."""

import asyncio
from datetime import date
from typing import Iterable

import httpx

from stieregg.models.availability import BookedRange
from stieregg.parsers.ical_parser import DEFAULT_HORIZON_MONTHS, IcalParseError, IcalParser
from stieregg.utils.clock import Clock
from stieregg.utils.dates import iter_days
from stieregg.utils.logger import get_logger, mask_url

logger = get_logger(__name__)


# =============================================================================
# Merge
# =============================================================================


def merge_booked_ranges(ranges: Iterable[BookedRange]) -> list[BookedRange]:
    """
    Merge raw ranges into a normalized list.

    Every range is expanded into its individual days, the day set is
    sorted, and consecutive days collapse into one inclusive range. The
    result is sorted, non-overlapping and non-adjacent, and does not
    depend on input order or duplicates.
    """
    booked_days: set[date] = set()
    for booked in ranges:
        booked_days.update(iter_days(booked.start, booked.end))

    if not booked_days:
        return []

    ordered = sorted(booked_days)
    merged: list[BookedRange] = []
    range_start = range_end = ordered[0]

    for day in ordered[1:]:
        if (day - range_end).days == 1:
            range_end = day
        else:
            merged.append(BookedRange(start=range_start, end=range_end))
            range_start = range_end = day

    merged.append(BookedRange(start=range_start, end=range_end))
    return merged


def is_normalized(ranges: list[BookedRange]) -> bool:
    """Check that ranges are sorted with at least one free day between them."""
    return all(
        (later.start - earlier.end).days > 1
        for earlier, later in zip(ranges, ranges[1:])
    )


# =============================================================================
# Feed Service
# =============================================================================


class IcalFeedService:
    """
    Fetches calendar feeds and merges their bookings.

    A failing feed (network error, non-2xx status, unparseable body)
    is logged and contributes no ranges; the other feeds still count.

    Usage:
        async with IcalFeedService(timeout=10) as feeds:
            ranges = await feeds.booked_ranges(apartment.calendar_urls)
    """

    def __init__(
        self,
        timeout: float = 10.0,
        clock: Clock | None = None,
        client: httpx.AsyncClient | None = None,
        horizon_months: int = DEFAULT_HORIZON_MONTHS,
    ):
        """
        Initialize feed service.

        Args:
            timeout: Per-request timeout in seconds
            clock: Clock providing the local timezone for date conversion
            client: Optional preconfigured HTTP client (tests pass one with a mock transport)
            horizon_months: Months after the current one that feed events may block
        """
        self.timeout = timeout
        self.parser = IcalParser(clock, horizon_months)
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "IcalFeedService":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def client(self) -> httpx.AsyncClient:
        """Get HTTP client, creating it on first use."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                headers={"Accept": "text/calendar"},
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def fetch_feed(self, url: str) -> list[BookedRange]:
        """
        Fetch and parse one feed.

        Args:
            url: iCal feed URL

        Returns:
            Unmerged ranges; empty list if the feed failed
        """
        try:
            response = await self.client.get(url)
            response.raise_for_status()
            ranges = self.parser.parse(response.content)
            logger.debug("ical_feed_fetched", url=mask_url(url), events=len(ranges))
            return ranges

        except httpx.HTTPStatusError as e:
            logger.warning(
                "ical_fetch_http_error",
                url=mask_url(url),
                status=e.response.status_code,
            )
        except httpx.HTTPError as e:
            logger.warning("ical_fetch_failed", url=mask_url(url), error=str(e))
        except IcalParseError as e:
            logger.warning("ical_parse_failed", url=mask_url(url), error=str(e))
        return []

    async def booked_ranges(self, calendar_urls: list[str]) -> list[BookedRange]:
        """
        Fetch all feeds concurrently and merge them.

        Args:
            calendar_urls: Feed URLs of one apartment

        Returns:
            Normalized booked ranges (empty when there are no feeds or all failed)
        """
        if not calendar_urls:
            return []

        per_feed = await asyncio.gather(*(self.fetch_feed(url) for url in calendar_urls))
        merged = merge_booked_ranges(r for ranges in per_feed for r in ranges)

        logger.info(
            "ical_feeds_merged",
            feeds=len(calendar_urls),
            raw_ranges=sum(len(ranges) for ranges in per_feed),
            merged_ranges=len(merged),
        )
        return merged
