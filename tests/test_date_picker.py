"""Tests for the date-range picker state machine and month navigation."""

from datetime import date, datetime, timedelta

import pytest

from stieregg.config import Settings
from stieregg.models.availability import BookedRange
from stieregg.services.date_picker import (
    DateRangePicker,
    MonthNavigator,
    SelectionMode,
    create_date_picker,
    month_grid,
)
from stieregg.utils.clock import FrozenClock
from stieregg.utils.dates import months_between


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def clock():
    return FrozenClock(datetime(2025, 7, 1, 9, 30))


@pytest.fixture
def booked():
    return [BookedRange(start=date(2025, 8, 1), end=date(2025, 8, 5))]


@pytest.fixture
def picker(clock, booked):
    picker = DateRangePicker(clock, booked)
    picker.open()
    return picker


# =============================================================================
# Selection
# =============================================================================


def test_two_click_selection(picker):
    assert picker.click(date(2025, 7, 10))
    assert picker.selection.check_in == date(2025, 7, 10)
    assert picker.selection.mode == SelectionMode.AWAITING_CHECK_OUT

    assert picker.click(date(2025, 7, 15))
    assert picker.selection.check_out == date(2025, 7, 15)
    assert picker.selection.mode == SelectionMode.AWAITING_CHECK_IN
    assert picker.selection.is_complete
    assert picker.is_open is False


def test_click_before_checkin_restarts_selection(picker):
    picker.click(date(2025, 7, 10))
    assert picker.click(date(2025, 7, 5))

    assert picker.selection.check_in == date(2025, 7, 5)
    assert picker.selection.check_out is None
    assert picker.selection.mode == SelectionMode.AWAITING_CHECK_OUT


def test_click_on_checkin_restarts_selection(picker):
    picker.click(date(2025, 7, 10))
    picker.click(date(2025, 7, 10))

    assert picker.selection.check_in == date(2025, 7, 10)
    assert picker.selection.check_out is None
    assert picker.selection.mode == SelectionMode.AWAITING_CHECK_OUT


def test_new_checkin_clears_stale_checkout(picker):
    picker.click(date(2025, 7, 10))
    picker.click(date(2025, 7, 15))
    picker.open()

    picker.click(date(2025, 7, 12))

    assert picker.selection.check_in == date(2025, 7, 12)
    assert picker.selection.check_out is None


def test_past_dates_are_ignored(picker):
    assert picker.click(date(2025, 6, 30)) is False
    assert picker.selection.check_in is None


def test_today_is_selectable(picker):
    assert picker.click(date(2025, 7, 1)) is True


def test_booked_dates_are_ignored(picker):
    assert picker.click(date(2025, 8, 3)) is False

    picker.click(date(2025, 7, 28))
    assert picker.click(date(2025, 8, 1)) is False
    assert picker.selection.check_out is None


def test_inline_picker_stays_open(clock):
    picker = DateRangePicker(clock, close_on_complete=False)
    picker.open()
    picker.click(date(2025, 7, 10))
    picker.click(date(2025, 7, 15))

    assert picker.is_open is True


def test_close_discards_half_selection(picker):
    picker.click(date(2025, 7, 10))
    picker.close()

    assert picker.selection.check_in is None
    assert picker.selection.mode == SelectionMode.AWAITING_CHECK_IN


def test_close_keeps_complete_selection(picker):
    picker.click(date(2025, 7, 10))
    picker.click(date(2025, 7, 15))
    picker.close()

    assert picker.selection.is_complete


def test_toggle(picker):
    picker.toggle()
    assert picker.is_open is False
    picker.toggle()
    assert picker.is_open is True


# =============================================================================
# Hover Preview
# =============================================================================


def test_hover_preview_forward(picker):
    picker.click(date(2025, 7, 10))
    picker.hover(date(2025, 7, 14))

    assert picker.preview_range() == (date(2025, 7, 10), date(2025, 7, 14))
    assert picker.is_in_range(date(2025, 7, 12))
    assert not picker.is_in_range(date(2025, 7, 15))


def test_hover_preview_backward(picker):
    picker.click(date(2025, 7, 10))
    picker.hover(date(2025, 7, 6))

    assert picker.preview_range() == (date(2025, 7, 6), date(2025, 7, 10))


def test_no_preview_without_checkin_or_after_checkout(picker):
    picker.hover(date(2025, 7, 6))
    assert picker.preview_range() is None

    picker.click(date(2025, 7, 10))
    picker.click(date(2025, 7, 15))
    picker.hover(date(2025, 7, 20))
    assert picker.preview_range() is None
    assert picker.is_in_range(date(2025, 7, 15))
    assert not picker.is_in_range(date(2025, 7, 20))


# =============================================================================
# Restore From Link
# =============================================================================


def test_restore_available_stay_shows_checkin_month(picker):
    assert picker.restore("2025-09-10", "2025-09-15") is True

    assert picker.selection.check_in == date(2025, 9, 10)
    assert picker.navigator.displayed_month == date(2025, 9, 1)


def test_restore_unavailable_stay_shows_current_month(picker):
    picker.navigator.go_to(2025, 12)

    assert picker.restore("2025-08-03", "2025-08-08") is False

    assert picker.navigator.displayed_month == date(2025, 7, 1)
    assert picker.selection.check_in == date(2025, 8, 3)


def test_restore_invalid_pair_clears(picker):
    picker.click(date(2025, 7, 10))

    assert picker.restore("2025-09-15", "2025-09-10") is False
    assert picker.selection.check_in is None


def test_stay_feedback(picker):
    assert picker.stay_feedback() is None

    picker.restore("2025-11-10", "2025-11-12")
    feedback = picker.stay_feedback()

    assert feedback.nights == 2
    assert feedback.minimum_nights == 3
    assert feedback.meets_minimum_nights is False
    assert feedback.available is True


def test_set_booked_ranges(picker):
    picker.set_booked_ranges([BookedRange(start=date(2025, 7, 20), end=date(2025, 7, 21))])

    assert picker.is_booked(date(2025, 7, 20))
    assert not picker.is_booked(date(2025, 8, 3))


# =============================================================================
# Month Navigation
# =============================================================================


def test_navigation_window(clock):
    navigator = MonthNavigator(clock)

    assert navigator.displayed_month == date(2025, 7, 1)
    assert navigator.can_go_previous is False
    assert navigator.previous() is False
    assert navigator.displayed_month == date(2025, 7, 1)

    for _ in range(24):
        assert navigator.next() is True
    assert navigator.displayed_month == date(2027, 7, 1)
    assert navigator.can_go_next is False
    assert navigator.next() is False
    assert navigator.displayed_month == date(2027, 7, 1)


def test_go_to_outside_window_is_ignored(clock):
    navigator = MonthNavigator(clock)

    assert navigator.go_to(2025, 6) is False
    assert navigator.go_to(2027, 8) is False
    assert navigator.go_to(2025, 13) is False
    assert navigator.go_to(2026, 2) is True
    assert navigator.displayed_month == date(2026, 2, 1)


def test_window_follows_clock(clock):
    navigator = MonthNavigator(clock)
    navigator.go_to(2025, 8)
    clock.advance(timedelta(days=70))

    assert navigator.first_month == date(2025, 9, 1)
    assert navigator.displayed_month == date(2025, 9, 1)


def test_visible_months_clamped(clock):
    navigator = MonthNavigator(clock)
    assert navigator.visible_months(2) == [date(2025, 7, 1), date(2025, 8, 1)]

    navigator.go_to(2027, 6)
    assert navigator.visible_months(3) == [date(2027, 6, 1), date(2027, 7, 1)]


def test_selectable_months(clock):
    months = MonthNavigator(clock).selectable_months()

    assert len(months) == 25
    assert months[0] == date(2025, 7, 1)
    assert months[-1] == date(2027, 7, 1)


def test_month_grid_starts_on_sunday():
    grid = month_grid(date(2025, 7, 15))

    assert len(grid) == 42
    # July 1st 2025 is a Tuesday
    assert grid[0] == date(2025, 6, 29)
    assert grid[0].weekday() == 6
    assert date(2025, 7, 31) in grid


# =============================================================================
# Configuration
# =============================================================================


def test_create_date_picker_uses_configured_window(monkeypatch, booked):
    monkeypatch.setenv("AVAILABILITY_BOOKING_WINDOW_MONTHS", "6")
    monkeypatch.setenv("AVAILABILITY_TIMEZONE", "Europe/Zurich")

    picker = create_date_picker(booked, settings=Settings())
    navigator = picker.navigator

    assert navigator.window_months == 6
    assert months_between(navigator.first_month, navigator.last_month) == 6
    assert picker.is_booked(date(2025, 8, 3))
