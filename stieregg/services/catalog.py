"""Apartment catalog loaded from static configuration."""

import json
import os
import re
from collections import defaultdict
from pathlib import Path
from typing import Iterable, Mapping

from pydantic import TypeAdapter

from stieregg.models.apartment import Apartment
from stieregg.utils.logger import get_logger

logger = get_logger(__name__)

# EIGER_VIEW_ICAL_URL_AIRBNB=https://... adds a feed to "eiger-view"
FEED_ENV_PATTERN = re.compile(r"([A-Z0-9_]+)_ICAL_URL_([A-Z0-9_]+)")

_apartment_list = TypeAdapter(list[Apartment])


class ApartmentNotFoundError(LookupError):
    """Raised when no apartment matches a slug."""

    def __init__(self, slug: str):
        super().__init__(f"Apartment not found: {slug}")
        self.slug = slug


def slugify(value: str) -> str:
    """Convert an ENV-style property name (EIGER_VIEW) into a slug."""
    return value.strip().lower().replace("_", "-")


def discover_feed_urls(environ: Mapping[str, str] | None = None) -> dict[str, list[str]]:
    """
    Collect calendar feed URLs from environment variables.

    Feed URLs carry platform export tokens, so they are usually kept out
    of the apartments file and supplied as <APARTMENT>_ICAL_URL_<SOURCE>.
    """
    environ = os.environ if environ is None else environ
    feeds: dict[str, list[str]] = defaultdict(list)
    for key in sorted(environ):
        url = environ[key]
        if not url:
            continue
        match = FEED_ENV_PATTERN.fullmatch(key)
        if not match:
            continue
        apartment_raw, _source = match.groups()
        feeds[slugify(apartment_raw)].append(url.strip())
    return dict(feeds)


class ApartmentCatalog:
    """Read-only lookup over the configured apartments."""

    def __init__(self, apartments: Iterable[Apartment]):
        self._by_slug: dict[str, Apartment] = {}
        for apartment in apartments:
            if apartment.slug in self._by_slug:
                raise ValueError(f"Duplicate apartment slug: {apartment.slug}")
            self._by_slug[apartment.slug] = apartment

    def __len__(self) -> int:
        return len(self._by_slug)

    def __iter__(self):
        return iter(self._by_slug.values())

    def all(self) -> list[Apartment]:
        return list(self._by_slug.values())

    def find(self, slug: str) -> Apartment | None:
        return self._by_slug.get(slug)

    def get(self, slug: str) -> Apartment:
        apartment = self._by_slug.get(slug)
        if apartment is None:
            raise ApartmentNotFoundError(slug)
        return apartment

    def get_by_id(self, apartment_id: str) -> Apartment | None:
        return next((a for a in self._by_slug.values() if a.id == apartment_id), None)


def load_catalog(
    path: str | Path,
    environ: Mapping[str, str] | None = None,
) -> ApartmentCatalog:
    """
    Load apartments from JSON and attach feed URLs found in the environment.

    Args:
        path: Apartments JSON file
        environ: Environment to scan for feed URLs (defaults to os.environ)

    Returns:
        ApartmentCatalog
    """
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    apartments = _apartment_list.validate_python(raw)
    discovered = discover_feed_urls(environ)

    merged = []
    for apartment in apartments:
        extra = [url for url in discovered.pop(apartment.slug, []) if url not in apartment.calendar_urls]
        if extra:
            apartment = apartment.model_copy(update={"calendar_urls": [*apartment.calendar_urls, *extra]})
        merged.append(apartment)

    for slug in discovered:
        logger.warning("feed_env_unknown_apartment", slug=slug)

    logger.info(
        "apartment_catalog_loaded",
        apartments=len(merged),
        feeds=sum(len(a.calendar_urls) for a in merged),
    )
    return ApartmentCatalog(merged)
