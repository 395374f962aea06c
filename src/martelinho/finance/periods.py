"""Reporting windows for the financial dashboard.

All functions are pure: they depend only on the reference date passed in.
Weeks start on Sunday and end on Saturday; ISO weeks are not used anywhere.
A month window always runs to the calendar month-end, including the month
still in progress (future days simply match no services).
"""
from __future__ import annotations

from datetime import date, timedelta, tzinfo
from typing import Any

from martelinho.dates import as_calendar_date, month_end, month_label, month_start, shift_months
from martelinho.models import TimeWindow

TODAY = "Hoje"
THIS_WEEK = "Esta Semana"
THIS_MONTH = "Este Mês"
THIS_YEAR = "Este Ano"
LAST_30_DAYS = "Últimos 30 dias"

DISPLAY_MONTHS = 6
SELECTOR_MONTHS = 24


def reference_date(now: Any, tz: tzinfo | None = None) -> date:
    """Normalize a reference instant to the calendar date it falls on.

    Args:
        now: A `date`, `datetime` or ISO string.
        tz: Business timezone used to read aware datetimes.
    """
    return as_calendar_date(now, tz)


def week_start(value: date) -> date:
    """Return the Sunday on or before `value`."""
    # weekday(): Monday=0 .. Sunday=6
    return value - timedelta(days=(value.weekday() + 1) % 7)


def month_window(value: date, label: str | None = None) -> TimeWindow:
    """Return the full calendar-month window containing `value`."""
    return TimeWindow(
        label=label or month_label(value),
        start=month_start(value),
        end=month_end(value),
    )


def current_period_windows(now: Any, tz: tzinfo | None = None) -> list[TimeWindow]:
    """Return the five dashboard windows for the reference date.

    Order: today, this week (Sunday to Saturday), this month, this year and
    the last 30 days (the reference date and the 30 days before it).
    """
    ref = reference_date(now, tz)
    sunday = week_start(ref)
    return [
        TimeWindow(label=TODAY, start=ref, end=ref),
        TimeWindow(label=THIS_WEEK, start=sunday, end=sunday + timedelta(days=6)),
        month_window(ref, THIS_MONTH),
        TimeWindow(label=THIS_YEAR, start=date(ref.year, 1, 1), end=date(ref.year, 12, 31)),
        TimeWindow(label=LAST_30_DAYS, start=ref - timedelta(days=30), end=ref),
    ]


def trailing_month_windows(
    now: Any,
    count: int = DISPLAY_MONTHS,
    tz: tzinfo | None = None,
) -> list[TimeWindow]:
    """Return one window per calendar month before the reference month.

    The first window is the month preceding the reference month and each
    following window is one month older, so the list is ordered
    most-recent-first and consecutive windows touch without gaps.

    Args:
        now: Reference date.
        count: Number of months to return.
        tz: Business timezone used to read aware datetimes.

    Raises:
        ValueError: if `count` is negative.
    """
    if count < 0:
        raise ValueError("count must be >= 0")
    ref = reference_date(now, tz)
    return [month_window(shift_months(ref, -i)) for i in range(1, count + 1)]


def available_months(
    now: Any,
    count: int = SELECTOR_MONTHS,
    tz: tzinfo | None = None,
) -> list[tuple[date, str]]:
    """Return month-selector options: the current month and `count` before it.

    Each option is ``(first day of month, label)``.
    """
    ref = reference_date(now, tz)
    months = [shift_months(ref, -i) for i in range(0, count + 1)]
    return [(m, month_label(m)) for m in months]
