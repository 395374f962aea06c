"""Financial summaries consumed by the dashboard and the CLI.

These functions are the presentation interface of the finance package:
they wire the window generator, the aggregator and the growth calculator
together. Storage and tenant are always passed explicitly.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, tzinfo
from typing import Any, Sequence

from martelinho.finance.aggregate import RangeQueryable, sum_service_values, summarize_windows
from martelinho.finance.growth import growth_series
from martelinho.finance.periods import (
    DISPLAY_MONTHS,
    current_period_windows,
    month_window,
    reference_date,
    trailing_month_windows,
)
from martelinho.models import MonthDetail, PeriodSummary
from martelinho.services.validate import validate_documents

log = logging.getLogger(__name__)


def get_current_period_summaries(
    store: RangeQueryable,
    tenant_id: str,
    now: Any,
    tz: tzinfo | None = None,
) -> list[PeriodSummary]:
    """Return summaries for today, this week, this month, this year and the last 30 days."""
    return summarize_windows(store, tenant_id, current_period_windows(now, tz))


def get_trailing_monthly_summaries(
    store: RangeQueryable,
    tenant_id: str,
    now: Any,
    count: int = DISPLAY_MONTHS,
    tz: tzinfo | None = None,
) -> list[PeriodSummary]:
    """Return one summary per month before the reference month, most recent first."""
    return summarize_windows(store, tenant_id, trailing_month_windows(now, count, tz))


def get_growth_series(monthly: Sequence[PeriodSummary]) -> list[float | None]:
    return growth_series(monthly)


def get_month_detail(
    store: RangeQueryable,
    tenant_id: str,
    month_date: Any,
    tz: tzinfo | None = None,
) -> MonthDetail:
    """Return the records of the calendar month containing `month_date`.

    Totals go through the same lenient reduction as the monthly summaries, so
    a document that fails validation is still counted even though it is left
    out of `records`. `average` is 0 for a month without services.
    """
    if not tenant_id:
        raise ValueError("tenant_id is required")
    window = month_window(reference_date(month_date, tz))
    docs = store.find_in_range(tenant_id, window.start, window.end)
    total, count = sum_service_values(docs)

    records, bad = validate_documents(docs)
    if bad:
        log.warning("%d service(s) of %s not listed in the month detail", bad, window.label)
    records.sort(key=lambda r: r.service_date, reverse=True)

    return MonthDetail(
        month=window,
        records=records,
        total=total,
        count=count,
        average=total / count if count else 0.0,
    )


@dataclass
class DashboardReport:
    """Everything the dashboard renders for one request."""
    generation: int
    reference: date
    current: list[PeriodSummary]
    monthly: list[PeriodSummary]
    growth: list[float | None]
    selected: MonthDetail | None = None


def build_dashboard_report(
    store: RangeQueryable,
    tenant_id: str,
    now: Any,
    generation: int,
    months: int = DISPLAY_MONTHS,
    selected_month: Any | None = None,
    tz: tzinfo | None = None,
) -> DashboardReport:
    """Compute the full dashboard for one request.

    Raises:
        StorageUnavailableError: if any query fails; the report is all or
            nothing.
    """
    ref = reference_date(now, tz)
    current = get_current_period_summaries(store, tenant_id, ref)
    monthly = get_trailing_monthly_summaries(store, tenant_id, ref, months)
    selected = (
        get_month_detail(store, tenant_id, selected_month, tz)
        if selected_month is not None
        else None
    )
    log.info("Dashboard report #%d built for tenant %s (ref=%s)", generation, tenant_id, ref)
    return DashboardReport(
        generation=generation,
        reference=ref,
        current=current,
        monthly=monthly,
        growth=get_growth_series(monthly),
        selected=selected,
    )
