"""Tests for the availability service."""

from datetime import date

import pytest

from stieregg.config import Settings
from stieregg.models.availability import BookedRange
from stieregg.services.availability_service import (
    AvailabilityError,
    AvailabilityService,
    create_availability_service,
)
from stieregg.services.catalog import ApartmentNotFoundError


@pytest.mark.asyncio
async def test_get_booked_ranges_merges_feeds(availability_service):
    ranges = await availability_service.get_booked_ranges("eiger-view")

    assert ranges == [BookedRange(start=date(2025, 8, 1), end=date(2025, 8, 5))]


@pytest.mark.asyncio
async def test_get_booked_ranges_is_cached(availability_service, fake_feeds):
    await availability_service.get_booked_ranges("eiger-view")
    await availability_service.get_booked_ranges("eiger-view")

    assert len(fake_feeds.calls) == 1


@pytest.mark.asyncio
async def test_unknown_slug(availability_service):
    with pytest.raises(ApartmentNotFoundError):
        await availability_service.get_booked_ranges("nope")


@pytest.mark.asyncio
async def test_ingestion_failure(availability_service):
    with pytest.raises(AvailabilityError) as exc_info:
        await availability_service.get_booked_ranges("broken-chalet")

    assert exc_info.value.slug == "broken-chalet"


@pytest.mark.asyncio
async def test_availability_map_isolates_failures(availability_service):
    availability = await availability_service.get_availability_map()

    assert availability["eiger-view"] == [BookedRange(start=date(2025, 8, 1), end=date(2025, 8, 5))]
    assert availability["alpenrose"] == []
    assert availability["broken-chalet"] is None


@pytest.mark.asyncio
async def test_check_stay_conflict(availability_service):
    result = await availability_service.check_stay("eiger-view", date(2025, 7, 28), date(2025, 8, 1))

    assert result.available is False
    assert result.nights == 4
    assert result.minimum_nights == 7
    assert result.meets_minimum_nights is False
    assert result.season == "high"
    assert result.bookable is False


@pytest.mark.asyncio
async def test_check_stay_bookable(availability_service):
    result = await availability_service.check_stay("alpenrose", date(2025, 10, 1), date(2025, 10, 4))

    assert result.available is True
    assert result.minimum_nights == 3
    assert result.season == "low"
    assert result.bookable is True


def test_create_availability_service_from_packaged_config():
    service = create_availability_service(Settings())

    assert isinstance(service, AvailabilityService)
    assert service.catalog.find("eiger-view") is not None
    assert service.seasons.default_tag == "low"
