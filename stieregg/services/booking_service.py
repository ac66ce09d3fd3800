"""Booking rules: availability checks, stay length and seasonal minimum nights."""

from datetime import date, datetime
from typing import Iterable, Mapping
from urllib.parse import quote

from stieregg.models.apartment import Apartment, Locale
from stieregg.models.availability import BookedRange
from stieregg.services.seasons import SeasonCalendar, get_season_calendar
from stieregg.utils.dates import parse_date

DateInput = date | datetime | str | None

MONTH_NAMES: dict[str, list[str]] = {
    "de": [
        "Januar", "Februar", "März", "April", "Mai", "Juni",
        "Juli", "August", "September", "Oktober", "November", "Dezember",
    ],
    "en": [
        "January", "February", "March", "April", "May", "June",
        "July", "August", "September", "October", "November", "December",
    ],
}


# =============================================================================
# Availability
# =============================================================================


def is_available(
    booked_ranges: Iterable[BookedRange],
    check_in: DateInput,
    check_out: DateInput,
) -> bool:
    """
    Check whether a stay conflicts with any booked range.

    The overlap test is inclusive on both ends: a check-out on the day
    another booking starts counts as a conflict.

    Args:
        booked_ranges: Booked ranges of one apartment (any order)
        check_in: Check-in date
        check_out: Check-out date

    Returns:
        False for unparseable dates, check_in >= check_out, or any overlap
    """
    start = parse_date(check_in)
    end = parse_date(check_out)
    if start is None or end is None or start >= end:
        return False

    return not any(start <= booked.end and end >= booked.start for booked in booked_ranges)


def listing_is_available(
    booked_ranges: Iterable[BookedRange],
    check_in: DateInput,
    check_out: DateInput,
) -> bool:
    """Listing display rule: without both dates an apartment shows as available."""
    if not check_in or not check_out:
        return True
    return is_available(booked_ranges, check_in, check_out)


def stay_nights(check_in: DateInput, check_out: DateInput) -> int:
    """Number of nights between two dates; 0 for invalid or non-positive stays."""
    start = parse_date(check_in)
    end = parse_date(check_out)
    if start is None or end is None:
        return 0
    return max((end - start).days, 0)


# =============================================================================
# Minimum Nights
# =============================================================================


def seasonal_minimum_nights(
    check_in: DateInput,
    apartment: Apartment | None = None,
    seasons: SeasonCalendar | None = None,
) -> int:
    """
    Minimum nights required for a stay starting on check_in.

    Every active season resolves to the apartment's override or the
    global default for that season. When seasons overlap the lowest
    value wins, in the guest's favour. Dates in no season (or
    unparseable dates) use the default season.
    """
    seasons = seasons or get_season_calendar()
    candidates = []
    for tag in seasons.resolved_tags(check_in):
        override = apartment.minimum_nights_override(tag) if apartment else None
        candidates.append(override if override is not None else seasons.default_minimum_nights(tag))
    return min(candidates)


def meets_minimum_nights(
    apartment: Apartment | None,
    check_in: DateInput,
    check_out: DateInput,
    seasons: SeasonCalendar | None = None,
) -> bool:
    """Check a stay against the seasonal minimum nights rule."""
    nights = stay_nights(check_in, check_out)
    if nights == 0:
        return False
    return nights >= seasonal_minimum_nights(check_in, apartment, seasons)


# =============================================================================
# Listings
# =============================================================================


def filter_apartments(
    apartments: Iterable[Apartment],
    availability: Mapping[str, list[BookedRange]],
    check_in: DateInput = None,
    check_out: DateInput = None,
    guests: int = 1,
    only_available: bool = False,
) -> list[Apartment]:
    """
    Filter apartments for the listing page.

    Apartments too small for the party are always dropped. With
    only_available set, apartments with a conflicting booking are
    dropped as well; apartments missing from the availability map are
    treated as having no bookings.
    """
    result = []
    for apartment in apartments:
        if apartment.capacity < guests:
            continue
        if only_available and not listing_is_available(
            availability.get(apartment.slug, []), check_in, check_out
        ):
            continue
        result.append(apartment)
    return result


# =============================================================================
# Booking Inquiry
# =============================================================================


def format_long_date(value: date, locale: Locale = "en") -> str:
    """Long date, e.g. "10. Juli 2025" or "10 July 2025"."""
    month = MONTH_NAMES[locale][value.month - 1]
    if locale == "de":
        return f"{value.day}. {month} {value.year}"
    return f"{value.day} {month} {value.year}"


def build_mailto_link(
    apartment: Apartment,
    check_in: DateInput,
    check_out: DateInput,
    guests: int | None = None,
    guest_name: str | None = None,
    locale: Locale = "en",
    email: str = "info@stieregg.ch",
    site_url: str = "",
) -> str:
    """
    Compose a mailto link for a booking request.

    Args:
        apartment: The apartment to book
        check_in: Check-in date
        check_out: Check-out date
        guests: Number of guests (optional)
        guest_name: Guest name; a blank placeholder is used when missing
        locale: Language of the apartment name and dates
        email: Recipient address
        site_url: Site origin for the link back to the apartment page

    Returns:
        mailto URL string

    Raises:
        ValueError: If either date cannot be parsed
    """
    start = parse_date(check_in)
    end = parse_date(check_out)
    if start is None or end is None:
        raise ValueError("Booking request needs valid check-in and check-out dates")

    apartment_name = apartment.name.get(locale)
    body_lines = [
        f"Apartment: {apartment_name}",
        "",
        f"Check-in: {format_long_date(start, locale)}",
        f"Check-out: {format_long_date(end, locale)}",
    ]
    if guests:
        body_lines.append(f"Guests: {guests}")
    body_lines.append(f"Name: {guest_name}" if guest_name else "Name: ____")
    body_lines.append("")
    body_lines.append(f"Apartment page: {site_url.rstrip('/')}/apartments/{apartment.slug}")

    subject = quote(f"Booking request: {apartment_name}", safe="")
    body = quote("\n".join(body_lines), safe="")
    return f"mailto:{email}?subject={subject}&body={body}"
