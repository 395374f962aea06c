"""Calendar-date helpers shared by models, reports and formatting.

Service dates are plain calendar dates. Anything that arrives with a
time-of-day component is reduced to its date here, in one place, so that a
timezone conversion can never push a service onto the neighbouring day.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, tzinfo
from typing import Any

MONTH_NAMES = (
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
)


def as_calendar_date(value: Any, tz: tzinfo | None = None) -> date:
    """Return the calendar date carried by `value`.

    Args:
        value: A `date`, a `datetime`, or an ISO string (``yyyy-MM-dd`` with
            an optional time part).
        tz: Zone used to read aware datetimes. Naive datetimes and strings
            are taken as already local; only their date part is kept.

    Raises:
        ValueError: if `value` cannot be read as a date.
    """
    if isinstance(value, datetime):
        if tz is not None and value.tzinfo is not None:
            value = value.astimezone(tz)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        # "2024-02-10T00:00:00Z" and "2024-02-10 12:00" both mean 2024-02-10
        return date.fromisoformat(text[:10])
    raise ValueError(f"Unsupported date value: {value!r}")


def to_query_date(value: date) -> str:
    """Return the ``yyyy-MM-dd`` string used in storage queries."""
    return value.strftime("%Y-%m-%d")


def month_start(value: date) -> date:
    return value.replace(day=1)


def month_end(value: date) -> date:
    last_day = calendar.monthrange(value.year, value.month)[1]
    return value.replace(day=last_day)


def shift_months(value: date, months: int) -> date:
    """Return the first day of the month `months` away from `value`'s month."""
    index = value.year * 12 + (value.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def month_label(value: date) -> str:
    """Return the Portuguese month + year label, e.g. ``fevereiro 2024``."""
    return f"{MONTH_NAMES[value.month - 1]} {value.year}"
