"""Time source used for every "today" and TTL comparison."""

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "Europe/Zurich"


class Clock:
    """
    Wall clock in the business's local timezone.

    All components ask a Clock for "now" instead of calling
    datetime.now() directly, so tests can freeze time.
    """

    def __init__(self, timezone: str = DEFAULT_TIMEZONE):
        self.tz = ZoneInfo(timezone)

    def now(self) -> datetime:
        """Current aware datetime in the local timezone."""
        return datetime.now(self.tz)

    def today(self) -> date:
        """Current local calendar date."""
        return self.now().date()

    def to_local_date(self, value: datetime | date) -> date:
        """
        Reduce a date or datetime to a local calendar date.

        Aware datetimes are converted into the local timezone first;
        naive (floating) datetimes keep their wall-clock date.
        """
        if isinstance(value, datetime):
            if value.tzinfo is not None:
                value = value.astimezone(self.tz)
            return value.date()
        return value


class FrozenClock(Clock):
    """Clock pinned to a fixed instant; advance it manually."""

    def __init__(self, current: datetime, timezone: str = DEFAULT_TIMEZONE):
        super().__init__(timezone)
        if current.tzinfo is None:
            current = current.replace(tzinfo=self.tz)
        self._current = current

    def now(self) -> datetime:
        return self._current

    def advance(self, delta: timedelta) -> None:
        self._current = self._current + delta

    def set(self, current: datetime) -> None:
        if current.tzinfo is None:
            current = current.replace(tzinfo=self.tz)
        self._current = current
