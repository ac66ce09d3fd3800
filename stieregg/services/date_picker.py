"""Interactive date-range picker: two-click selection and month navigation.

The picker holds no rendering code. A front end feeds it clicks, hovers
and open/close events and reads back the selection, the highlighted
span and which days are disabled.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Iterable

from stieregg.config import Settings, get_settings
from stieregg.models.apartment import Apartment
from stieregg.models.availability import BookedRange
from stieregg.services.booking_service import (
    DateInput,
    is_available,
    meets_minimum_nights,
    seasonal_minimum_nights,
    stay_nights,
)
from stieregg.services.seasons import SeasonCalendar
from stieregg.utils.clock import Clock
from stieregg.utils.dates import add_months, month_start, months_between, parse_date
from stieregg.utils.logger import get_logger

logger = get_logger(__name__)

BOOKING_WINDOW_MONTHS = 24
GRID_DAYS = 42


class SelectionMode(str, Enum):
    """Which date the next click sets."""

    AWAITING_CHECK_IN = "awaiting-checkin"
    AWAITING_CHECK_OUT = "awaiting-checkout"


@dataclass
class DateSelection:
    """Check-in/check-out pair being selected."""

    check_in: date | None = None
    check_out: date | None = None
    mode: SelectionMode = SelectionMode.AWAITING_CHECK_IN

    @property
    def is_complete(self) -> bool:
        return self.check_in is not None and self.check_out is not None


@dataclass
class StayFeedback:
    """Minimum-stay hint shown under the calendar."""

    nights: int
    minimum_nights: int
    meets_minimum_nights: bool
    available: bool


def month_grid(month: date) -> list[date]:
    """42 days (six Sunday-first weeks) covering the month of `month`."""
    first = month_start(month)
    # date.weekday(): Monday=0 .. Sunday=6
    offset = (first.weekday() + 1) % 7
    grid_start = first - timedelta(days=offset)
    return [grid_start + timedelta(days=i) for i in range(GRID_DAYS)]


# =============================================================================
# Month Navigation
# =============================================================================


class MonthNavigator:
    """
    Displayed month, clamped to [current month, current month + window].

    Moves outside the window are ignored so the front end can disable
    its buttons from can_go_previous / can_go_next.
    """

    def __init__(self, clock: Clock, window_months: int = BOOKING_WINDOW_MONTHS):
        self.clock = clock
        self.window_months = window_months
        self._displayed = self.first_month

    @property
    def first_month(self) -> date:
        return month_start(self.clock.today())

    @property
    def last_month(self) -> date:
        return add_months(self.first_month, self.window_months)

    @property
    def displayed_month(self) -> date:
        # "today" may have moved on since the month was chosen
        if not self.is_in_window(self._displayed):
            self._displayed = self.first_month
        return self._displayed

    def is_in_window(self, month: date) -> bool:
        return self.first_month <= month_start(month) <= self.last_month

    @property
    def can_go_previous(self) -> bool:
        return self.displayed_month > self.first_month

    @property
    def can_go_next(self) -> bool:
        return self.displayed_month < self.last_month

    def previous(self) -> bool:
        if not self.can_go_previous:
            return False
        self._displayed = add_months(self.displayed_month, -1)
        return True

    def next(self) -> bool:
        if not self.can_go_next:
            return False
        self._displayed = add_months(self.displayed_month, 1)
        return True

    def go_to(self, year: int, month: int) -> bool:
        """Jump to a month from a month/year selector; ignored outside the window."""
        try:
            target = date(year, month, 1)
        except ValueError:
            return False
        if not self.is_in_window(target):
            return False
        self._displayed = target
        return True

    def reset(self) -> None:
        self._displayed = self.first_month

    def visible_months(self, count: int = 1) -> list[date]:
        """Up to `count` consecutive months from the displayed one, inside the window."""
        start = self.displayed_month
        remaining = months_between(start, self.last_month) + 1
        return [add_months(start, i) for i in range(max(0, min(count, remaining)))]

    def selectable_months(self) -> list[date]:
        """Every month in the window, for a month selector."""
        return [add_months(self.first_month, i) for i in range(self.window_months + 1)]


# =============================================================================
# Range Picker
# =============================================================================


class DateRangePicker:
    """
    Two-click check-in/check-out selection.

    Usage:
        picker = DateRangePicker(clock, booked_ranges)
        picker.open()
        picker.click(date(2025, 7, 10))   # check-in
        picker.click(date(2025, 7, 15))   # check-out, picker closes
    """

    def __init__(
        self,
        clock: Clock | None = None,
        booked_ranges: Iterable[BookedRange] = (),
        window_months: int = BOOKING_WINDOW_MONTHS,
        close_on_complete: bool = True,
    ):
        """
        Initialize picker.

        Args:
            clock: Time source for "today" and the navigable window
            booked_ranges: Ranges whose days cannot be clicked
            window_months: Months ahead of the current month that can be shown
            close_on_complete: Close after check-out is picked (dropdown pickers)
        """
        self.clock = clock or Clock()
        self.booked_ranges: list[BookedRange] = list(booked_ranges)
        self.navigator = MonthNavigator(self.clock, window_months)
        self.close_on_complete = close_on_complete
        self.selection = DateSelection()
        self.is_open = False
        self.hovered: date | None = None

    # =========================================================================
    # Day State
    # =========================================================================

    def is_past(self, day: date) -> bool:
        return day < self.clock.today()

    def is_booked(self, day: date) -> bool:
        return any(booked.contains(day) for booked in self.booked_ranges)

    def is_selectable(self, day: date) -> bool:
        return not self.is_past(day) and not self.is_booked(day)

    def set_booked_ranges(self, booked_ranges: Iterable[BookedRange]) -> None:
        """Replace blocked ranges, e.g. once the availability request resolves."""
        self.booked_ranges = list(booked_ranges)

    # =========================================================================
    # Interaction
    # =========================================================================

    def open(self) -> None:
        self.is_open = True

    def toggle(self) -> None:
        if self.is_open:
            self.close()
        else:
            self.open()

    def close(self) -> None:
        """
        Dismiss the picker.

        A half-finished selection (check-in without check-out) is
        discarded.
        """
        self.is_open = False
        self.hovered = None
        if self.selection.check_in is not None and self.selection.check_out is None:
            logger.debug("date_selection_abandoned", check_in=self.selection.check_in.isoformat())
            self.selection = DateSelection()

    def clear(self) -> None:
        self.selection = DateSelection()
        self.hovered = None

    def click(self, day: date) -> bool:
        """
        Handle a click on a day cell.

        Returns:
            False when the day is not selectable and the click was ignored
        """
        if not self.is_selectable(day):
            return False

        selection = self.selection
        if selection.mode == SelectionMode.AWAITING_CHECK_IN or selection.check_in is None:
            self._start(day)
        elif day <= selection.check_in:
            self._start(day)
        else:
            selection.check_out = day
            selection.mode = SelectionMode.AWAITING_CHECK_IN
            self.hovered = None
            if self.close_on_complete:
                self.is_open = False
        return True

    def _start(self, day: date) -> None:
        self.selection = DateSelection(
            check_in=day,
            check_out=None,
            mode=SelectionMode.AWAITING_CHECK_OUT,
        )

    def hover(self, day: date | None) -> None:
        self.hovered = day

    def preview_range(self) -> tuple[date, date] | None:
        """Span highlighted while choosing check-out, in either direction."""
        selection = self.selection
        if (
            selection.mode != SelectionMode.AWAITING_CHECK_OUT
            or selection.check_in is None
            or selection.check_out is not None
            or self.hovered is None
        ):
            return None
        return min(selection.check_in, self.hovered), max(selection.check_in, self.hovered)

    def is_in_range(self, day: date) -> bool:
        """Whether a day is inside the committed selection or the hover preview."""
        if self.selection.is_complete:
            return self.selection.check_in <= day <= self.selection.check_out
        preview = self.preview_range()
        return preview is not None and preview[0] <= day <= preview[1]

    # =========================================================================
    # External Selection
    # =========================================================================

    def restore(self, check_in: DateInput, check_out: DateInput) -> bool:
        """
        Apply a check-in/check-out pair from outside, e.g. a shared link.

        The calendar shows the check-in month only when the stay is
        available and inside the window; otherwise it shows the current
        month.

        Returns:
            Whether the restored stay is available
        """
        start = parse_date(check_in, self.clock)
        end = parse_date(check_out, self.clock)
        if start is None or end is None or start >= end:
            self.clear()
            self.navigator.reset()
            return False

        self.selection = DateSelection(check_in=start, check_out=end)
        available = is_available(self.booked_ranges, start, end)
        if not available or not self.navigator.go_to(start.year, start.month):
            self.navigator.reset()
        return available

    def stay_feedback(
        self,
        apartment: Apartment | None = None,
        seasons: SeasonCalendar | None = None,
    ) -> StayFeedback | None:
        """Minimum-stay feedback for the committed selection."""
        selection = self.selection
        if not selection.is_complete:
            return None
        return StayFeedback(
            nights=stay_nights(selection.check_in, selection.check_out),
            minimum_nights=seasonal_minimum_nights(selection.check_in, apartment, seasons),
            meets_minimum_nights=meets_minimum_nights(
                apartment, selection.check_in, selection.check_out, seasons
            ),
            available=is_available(self.booked_ranges, selection.check_in, selection.check_out),
        )


def create_date_picker(
    booked_ranges: Iterable[BookedRange] = (),
    settings: Settings | None = None,
    close_on_complete: bool = True,
) -> DateRangePicker:
    """Picker using the configured timezone and booking window."""
    settings = settings or get_settings()
    return DateRangePicker(
        clock=Clock(settings.timezone),
        booked_ranges=booked_ranges,
        window_months=settings.availability.booking_window_months,
        close_on_complete=close_on_complete,
    )
