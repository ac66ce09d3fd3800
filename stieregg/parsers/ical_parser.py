"""iCal (RFC 5545) parser producing booked date ranges."""

from datetime import date, datetime, timedelta

from icalendar import Calendar

from stieregg.models.availability import BookedRange
from stieregg.utils.clock import Clock
from stieregg.utils.dates import add_months
from stieregg.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_HORIZON_MONTHS = 24


class IcalParseError(Exception):
    """Raised when a feed body is not a readable iCal document."""


class IcalParser:
    """
    Parser for booking platform calendar exports.

    Every VEVENT becomes one BookedRange. Times and timezones are
    dropped: aware datetimes are first converted into the local
    timezone, so a booking starting 2025-08-01T00:00+02:00 stays on
    August 1st instead of shifting to July 31st in UTC.

    Events are cut off at the horizon, the last day of the last
    bookable month. Owner blocks such as "closed until 9999-12-31" then
    stay a bounded number of days.
    """

    def __init__(self, clock: Clock | None = None, horizon_months: int = DEFAULT_HORIZON_MONTHS):
        self.clock = clock or Clock()
        self.horizon_months = horizon_months

    @property
    def horizon(self) -> date:
        """Last day an event can block."""
        return add_months(self.clock.today(), self.horizon_months + 1) - timedelta(days=1)

    def parse(self, text: str | bytes) -> list[BookedRange]:
        """
        Parse an iCal document.

        Args:
            text: Raw feed body

        Returns:
            Booked ranges in feed order (not merged)

        Raises:
            IcalParseError: If the body is not an iCal calendar
        """
        try:
            calendar = Calendar.from_ical(text)
        except Exception as e:
            raise IcalParseError(f"Invalid iCal data: {e}") from e

        if getattr(calendar, "name", None) != "VCALENDAR":
            raise IcalParseError("Feed does not contain a VCALENDAR")

        horizon = self.horizon
        ranges: list[BookedRange] = []
        skipped = 0
        for event in calendar.walk("VEVENT"):
            booked = self._event_to_range(event, horizon)
            if booked is None:
                skipped += 1
                continue
            ranges.append(booked)

        if skipped:
            logger.debug("ical_events_skipped", skipped=skipped, parsed=len(ranges))
        return ranges

    def _event_to_range(self, event, horizon: date) -> BookedRange | None:
        """Convert a VEVENT to a BookedRange, clamped to the horizon; None when unusable."""
        start = self._get_date(event, "DTSTART")
        if start is None or start > horizon:
            return None

        end = self._get_date(event, "DTEND")
        if end is None:
            end = self._end_from_duration(event, start, horizon)

        if end < start:
            logger.warning(
                "ical_event_end_before_start",
                uid=str(event.get("UID", "")),
                start=start.isoformat(),
                end=end.isoformat(),
            )
            return None

        return BookedRange(start=start, end=min(end, horizon))

    def _get_date(self, event, key: str) -> date | None:
        prop = event.get(key)
        if prop is None:
            return None
        value = getattr(prop, "dt", None)
        if not isinstance(value, (date, datetime)):
            return None
        try:
            return self.clock.to_local_date(value)
        except OverflowError:
            # timestamps at the edge of the datetime range keep their own date
            return value.date()

    def _end_from_duration(self, event, start: date, horizon: date) -> date:
        # RFC 5545: without DTEND or DURATION an all-day event lasts one day
        prop = event.get("DURATION")
        duration = getattr(prop, "dt", None)
        if isinstance(duration, timedelta) and duration > timedelta(0):
            return start + timedelta(days=min(duration.days, (horizon - start).days))
        return start


def parse_ical_ranges(
    text: str | bytes,
    clock: Clock | None = None,
    horizon_months: int = DEFAULT_HORIZON_MONTHS,
) -> list[BookedRange]:
    """
    Convenience function to parse a feed body.

    Args:
        text: Raw iCal document
        clock: Clock providing the local timezone and "today"
        horizon_months: Months after the current one that events may block

    Returns:
        Booked ranges in feed order
    """
    return IcalParser(clock, horizon_months).parse(text)
