"""Availability service - apartment slug to cached booked ranges and stay checks."""

import asyncio
from dataclasses import dataclass
from datetime import date

from stieregg.config import Settings, get_settings
from stieregg.models.apartment import Apartment
from stieregg.models.availability import BookedRange
from stieregg.services.booking_service import (
    is_available,
    meets_minimum_nights,
    seasonal_minimum_nights,
    stay_nights,
)
from stieregg.services.cache_service import AvailabilityCache
from stieregg.services.catalog import ApartmentCatalog, ApartmentNotFoundError, load_catalog
from stieregg.services.ical_service import IcalFeedService
from stieregg.services.seasons import SeasonCalendar, load_season_calendar
from stieregg.utils.clock import Clock
from stieregg.utils.logger import get_logger, log_context

logger = get_logger(__name__)


# =============================================================================
# Exceptions & Results
# =============================================================================


class AvailabilityError(Exception):
    """Booked ranges could not be produced for an apartment."""

    def __init__(self, message: str, slug: str | None = None):
        super().__init__(message)
        self.slug = slug


@dataclass
class StayCheck:
    """Availability and minimum-stay verdict for one requested stay."""

    slug: str
    check_in: date
    check_out: date
    available: bool
    nights: int
    minimum_nights: int
    meets_minimum_nights: bool
    season: str

    @property
    def bookable(self) -> bool:
        return self.available and self.meets_minimum_nights


# =============================================================================
# Availability Service
# =============================================================================


class AvailabilityService:
    """
    Answers availability questions for configured apartments.

    Feeds are fetched through the AvailabilityCache, so repeated
    requests within the TTL do not reach the booking platforms.
    """

    def __init__(
        self,
        catalog: ApartmentCatalog,
        cache: AvailabilityCache,
        seasons: SeasonCalendar,
        feeds: IcalFeedService | None = None,
    ):
        """
        Initialize availability service.

        Args:
            catalog: Apartment data source
            cache: Cache wrapping the feed loader
            seasons: Season classifier used for minimum nights
            feeds: Feed service owned by this instance (closed on close())
        """
        self.catalog = catalog
        self.cache = cache
        self.seasons = seasons
        self.feeds = feeds

    def get_apartment(self, slug: str) -> Apartment:
        """Raises ApartmentNotFoundError for unknown slugs."""
        return self.catalog.get(slug)

    async def get_booked_ranges(self, slug: str) -> list[BookedRange]:
        """
        Get merged booked ranges for an apartment.

        Args:
            slug: Apartment slug

        Returns:
            Normalized booked ranges

        Raises:
            ApartmentNotFoundError: Unknown slug
            AvailabilityError: Ingestion failed as a whole
        """
        apartment = self.catalog.get(slug)
        with log_context(slug=slug):
            try:
                return await self.cache.get_booked_ranges(apartment.calendar_urls)
            except Exception as e:
                logger.error("availability_ingestion_failed", error=str(e))
                raise AvailabilityError(f"Failed to fetch availability for {slug}", slug=slug) from e

    async def get_availability_map(
        self,
        slugs: list[str] | None = None,
    ) -> dict[str, list[BookedRange] | None]:
        """
        Fetch booked ranges for several apartments in parallel.

        Failures are isolated per apartment: a failed apartment maps to
        None (availability unknown) and does not affect the others.
        """
        slugs = slugs if slugs is not None else [a.slug for a in self.catalog]
        results = await asyncio.gather(
            *(self.get_booked_ranges(slug) for slug in slugs),
            return_exceptions=True,
        )

        availability: dict[str, list[BookedRange] | None] = {}
        for slug, result in zip(slugs, results):
            if isinstance(result, BaseException):
                if not isinstance(result, (AvailabilityError, ApartmentNotFoundError)):
                    raise result
                logger.warning("availability_unknown", slug=slug, error=str(result))
                availability[slug] = None
            else:
                availability[slug] = result
        return availability

    async def check_stay(self, slug: str, check_in: date, check_out: date) -> StayCheck:
        """
        Evaluate a requested stay for an apartment.

        Args:
            slug: Apartment slug
            check_in: Check-in date
            check_out: Check-out date

        Returns:
            StayCheck
        """
        apartment = self.catalog.get(slug)
        ranges = await self.get_booked_ranges(slug)
        return StayCheck(
            slug=slug,
            check_in=check_in,
            check_out=check_out,
            available=is_available(ranges, check_in, check_out),
            nights=stay_nights(check_in, check_out),
            minimum_nights=seasonal_minimum_nights(check_in, apartment, self.seasons),
            meets_minimum_nights=meets_minimum_nights(apartment, check_in, check_out, self.seasons),
            season=self.seasons.season_for(check_in),
        )

    async def close(self) -> None:
        if self.feeds is not None:
            await self.feeds.close()


def create_availability_service(settings: Settings | None = None) -> AvailabilityService:
    """
    Create an availability service from settings.

    Args:
        settings: Settings instance (defaults to get_settings())

    Returns:
        Configured AvailabilityService
    """
    settings = settings or get_settings()
    clock = Clock(settings.timezone)
    feeds = IcalFeedService(
        timeout=settings.availability.fetch_timeout_seconds,
        clock=clock,
        horizon_months=settings.availability.booking_window_months,
    )
    cache = AvailabilityCache(feeds.booked_ranges, ttl=settings.cache_ttl, clock=clock)

    return AvailabilityService(
        catalog=load_catalog(settings.apartments_file),
        cache=cache,
        seasons=load_season_calendar(settings.seasons_file, clock),
        feeds=feeds,
    )
