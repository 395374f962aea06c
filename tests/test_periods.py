from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from martelinho.finance.periods import (
    available_months,
    current_period_windows,
    reference_date,
    trailing_month_windows,
    week_start,
)

REFERENCE_DATES = [
    date(2024, 1, 1),
    date(2024, 2, 29),
    date(2024, 3, 1),
    date(2024, 3, 3),   # Sunday
    date(2024, 3, 9),   # Saturday
    date(2024, 12, 31),
    date(2025, 6, 15),
]


@pytest.mark.parametrize("ref", REFERENCE_DATES)
def test_today_window_is_a_single_day(ref: date) -> None:
    today = current_period_windows(ref)[0]
    assert today.label == "Hoje"
    assert today.start == today.end == ref


@pytest.mark.parametrize("ref", REFERENCE_DATES)
def test_this_month_contains_reference_and_runs_to_month_end(ref: date) -> None:
    month = current_period_windows(ref)[2]
    assert month.start <= ref <= month.end
    assert month.start.day == 1
    assert (month.end + timedelta(days=1)).day == 1


def test_current_windows_labels_and_bounds() -> None:
    windows = current_period_windows(date(2024, 3, 6))  # Wednesday
    assert [w.label for w in windows] == [
        "Hoje", "Esta Semana", "Este Mês", "Este Ano", "Últimos 30 dias",
    ]
    week, month, year, last30 = windows[1:]
    assert (week.start, week.end) == (date(2024, 3, 3), date(2024, 3, 9))
    assert (month.start, month.end) == (date(2024, 3, 1), date(2024, 3, 31))
    assert (year.start, year.end) == (date(2024, 1, 1), date(2024, 12, 31))
    assert (last30.start, last30.end) == (date(2024, 2, 5), date(2024, 3, 6))


def test_week_starts_on_sunday() -> None:
    assert week_start(date(2024, 3, 3)) == date(2024, 3, 3)
    assert week_start(date(2024, 3, 9)) == date(2024, 3, 3)
    assert week_start(date(2024, 3, 4)) == date(2024, 3, 3)


@pytest.mark.parametrize("ref", REFERENCE_DATES)
@pytest.mark.parametrize("count", [1, 2, 6, 24])
def test_trailing_months_are_contiguous_and_most_recent_first(ref: date, count: int) -> None:
    windows = trailing_month_windows(ref, count)
    assert len(windows) == count
    assert windows[0].end < ref
    for newer, older in zip(windows, windows[1:]):
        assert older.end < newer.start
        assert older.end + timedelta(days=1) == newer.start


def test_trailing_months_labels() -> None:
    windows = trailing_month_windows(date(2024, 3, 1), 2)
    assert [w.label for w in windows] == ["fevereiro 2024", "janeiro 2024"]
    assert windows[0].end == date(2024, 2, 29)


def test_trailing_months_cross_year_boundary() -> None:
    windows = trailing_month_windows(date(2024, 1, 20), 2)
    assert [(w.start, w.end) for w in windows] == [
        (date(2023, 12, 1), date(2023, 12, 31)),
        (date(2023, 11, 1), date(2023, 11, 30)),
    ]


def test_trailing_months_rejects_negative_count() -> None:
    with pytest.raises(ValueError):
        trailing_month_windows(date(2024, 1, 1), -1)


def test_available_months_include_current_month() -> None:
    months = available_months(date(2024, 3, 15))
    assert len(months) == 25
    assert months[0] == (date(2024, 3, 1), "março 2024")
    assert months[-1] == (date(2022, 3, 1), "março 2022")


def test_reference_date_uses_business_timezone() -> None:
    # 01:30 UTC on the 2nd is still the 1st in São Paulo
    instant = datetime(2024, 3, 2, 1, 30, tzinfo=timezone.utc)
    assert reference_date(instant, ZoneInfo("America/Sao_Paulo")) == date(2024, 3, 1)
    assert reference_date("2024-03-01T23:59:00Z") == date(2024, 3, 1)
    assert reference_date(datetime(2024, 3, 1, 12, 0)) == date(2024, 3, 1)
