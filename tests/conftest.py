"""Shared fixtures."""

from datetime import date

import pytest

from stieregg.models.apartment import Apartment
from stieregg.models.availability import BookedRange
from stieregg.models.season import SeasonConfig
from stieregg.services.availability_service import AvailabilityService
from stieregg.services.cache_service import AvailabilityCache
from stieregg.services.catalog import ApartmentCatalog
from stieregg.services.ical_service import merge_booked_ranges
from stieregg.services.seasons import SeasonCalendar

FEEDS = {
    "https://airbnb.test/eiger.ics": [BookedRange(start=date(2025, 8, 1), end=date(2025, 8, 3))],
    "https://booking.test/eiger.ics": [BookedRange(start=date(2025, 8, 4), end=date(2025, 8, 5))],
    "https://airbnb.test/alpenrose.ics": [],
}


class FakeFeeds:
    """Stands in for IcalFeedService.booked_ranges; "broken" URLs raise."""

    def __init__(self):
        self.calls: list[list[str]] = []

    async def __call__(self, urls: list[str]) -> list[BookedRange]:
        self.calls.append(urls)
        if any("broken" in url for url in urls):
            raise RuntimeError("calendar provider unreachable")
        return merge_booked_ranges(r for url in urls for r in FEEDS.get(url, []))


@pytest.fixture
def season_calendar():
    return SeasonCalendar(
        SeasonConfig.model_validate(
            {
                "default_tag": "low",
                "seasons": [
                    {
                        "tag": "high",
                        "label": {"de": "Hochsaison", "en": "High season"},
                        "minimum_nights": 5,
                        "ranges": [{"start": "07-01", "end": "08-31"}],
                    },
                    {
                        "tag": "low",
                        "label": {"de": "Nebensaison", "en": "Low season"},
                        "minimum_nights": 3,
                        "ranges": [],
                    },
                ],
            }
        )
    )


@pytest.fixture
def catalog():
    return ApartmentCatalog(
        [
            Apartment(
                id="1",
                slug="eiger-view",
                name={"de": "Wohnung Eigerblick", "en": "Eiger View Apartment"},
                calendar_urls=["https://airbnb.test/eiger.ics", "https://booking.test/eiger.ics"],
                capacity=4,
                min_nights={"high": 7},
            ),
            Apartment(
                id="2",
                slug="alpenrose",
                name={"de": "Wohnung Alpenrose", "en": "Alpenrose Apartment"},
                calendar_urls=["https://airbnb.test/alpenrose.ics"],
                capacity=2,
            ),
            Apartment(
                id="3",
                slug="broken-chalet",
                name={"de": "Chalet", "en": "Chalet"},
                calendar_urls=["https://broken.test/chalet.ics"],
                capacity=6,
            ),
        ]
    )


@pytest.fixture
def fake_feeds():
    return FakeFeeds()


@pytest.fixture
def availability_service(catalog, fake_feeds, season_calendar):
    return AvailabilityService(
        catalog=catalog,
        cache=AvailabilityCache(fake_feeds),
        seasons=season_calendar,
    )
