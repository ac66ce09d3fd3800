"""Date parsing and month arithmetic helpers."""

from datetime import date, datetime, timedelta
from typing import Iterator

from stieregg.utils.clock import Clock

ISO_DATE_FORMAT = "%Y-%m-%d"


def parse_date(value: date | datetime | str | None, clock: Clock | None = None) -> date | None:
    """
    Parse a calendar date from user or config input.

    Accepts date objects, datetimes and ISO strings ("2025-07-10" or a
    full ISO timestamp). Aware datetimes are converted to the local
    date of `clock` (Europe/Zurich by default) before the time part is
    dropped. Returns None for anything that cannot be parsed; callers
    decide how to degrade.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return (clock or Clock()).to_local_date(value)
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return (clock or Clock()).to_local_date(parsed)


def format_date(value: date) -> str:
    """Format as YYYY-MM-DD."""
    return value.strftime(ISO_DATE_FORMAT)


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every day from start to end, both inclusive."""
    # stops at end, which may be date.max
    for offset in range((end - start).days + 1):
        yield start + timedelta(days=offset)


def month_start(value: date) -> date:
    return value.replace(day=1)


def add_months(value: date, months: int) -> date:
    """Shift to the first day of the month `months` away."""
    index = value.year * 12 + (value.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def months_between(start: date, end: date) -> int:
    """Whole calendar months from start's month to end's month."""
    return (end.year - start.year) * 12 + (end.month - start.month)
