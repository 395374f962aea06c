"""Month-over-month growth of monthly totals."""
from __future__ import annotations

from typing import Sequence

from martelinho.models import PeriodSummary

# Growth reported when the older month had no revenue at all
GROWTH_FROM_ZERO = 100.0


def growth_rate(current: float, previous: float) -> float:
    """Return the percentage change from `previous` to `current`.

    A zero `previous` total yields exactly 100 rather than an infinite or
    undefined value.
    """
    if previous == 0:
        return GROWTH_FROM_ZERO
    return (current - previous) / previous * 100


def growth_series(monthly: Sequence[PeriodSummary]) -> list[float | None]:
    """Return the growth of each month versus the month before it.

    Args:
        monthly: Monthly summaries ordered most-recent-first.

    Returns:
        A list aligned with `monthly`. The last (oldest) entry is ``None``
        because there is no older month to compare it with.
    """
    rates: list[float | None] = [
        growth_rate(monthly[i].total, monthly[i + 1].total)
        for i in range(len(monthly) - 1)
    ]
    if monthly:
        rates.append(None)
    return rates
