"""Per-window totals of service values for one tenant.

Each window is summarized by its own range query. Windows are independent,
so the queries are dispatched as Dask delayed tasks on the threaded
scheduler and joined in the caller's order.

Two failure policies apply:
- a malformed monetary value on a single record counts as 0 (the record is
  still counted) and only produces a warning;
- a storage failure on any window fails the whole call; no partial list is
  ever returned.
"""
from __future__ import annotations

import logging
from typing import Any, Protocol, Sequence
from typing import cast, Any as TypingAny
from datetime import date

import pandas as pd
from dask import delayed, compute  # type: ignore[attr-defined]

from martelinho.models import PeriodSummary, TimeWindow
from martelinho.services.validate import parse_money

log = logging.getLogger(__name__)


class RangeQueryable(Protocol):
    """Storage collaborator used by the aggregator."""

    def find_in_range(
        self,
        tenant_id: str,
        start: date,
        end: date,
        fields: Sequence[str] | None = None,
    ) -> list[dict[str, Any]]: ...


def sum_service_values(docs: Sequence[dict[str, Any]]) -> tuple[float, int]:
    """Reduce documents to (total, count).

    Unparsable, missing or negative values contribute 0 to the total but
    still count as one service.
    """
    values = pd.Series(
        [parse_money(d.get("service_value")) for d in docs],
        dtype="float64",
    )
    values = values.where(values >= 0)

    malformed = int(values.isna().sum())
    if malformed:
        log.warning("%d service(s) with malformed service_value counted as 0", malformed)

    return float(values.fillna(0).sum()), int(len(values))


def summarize_window(store: RangeQueryable, tenant_id: str, window: TimeWindow) -> PeriodSummary:
    """Return the total and count of the tenant's services inside `window`."""
    docs = store.find_in_range(tenant_id, window.start, window.end, fields=["service_value"])
    total, count = sum_service_values(docs)
    return PeriodSummary(period=window.label, total=total, count=count)


def summarize_windows(
    store: RangeQueryable,
    tenant_id: str,
    windows: Sequence[TimeWindow],
) -> list[PeriodSummary]:
    """Summarize every window concurrently, preserving the input order.

    Args:
        store: Storage collaborator (usually a `ServiceRepository`).
        tenant_id: Owner of the records; required.
        windows: Windows to summarize.

    Returns:
        One `PeriodSummary` per window, in the same order as `windows`.

    Raises:
        StorageUnavailableError: if any window's query fails.
    """
    if not tenant_id:
        raise ValueError("tenant_id is required")
    if not windows:
        return []

    tasks = [delayed(summarize_window)(store, tenant_id, w) for w in windows]

    # `compute` is untyped in our environment; cast to Any before calling
    results = cast(TypingAny, compute)(*tasks, scheduler="threads")

    log.info("Summarized %d window(s) for tenant %s", len(results), tenant_id)
    return list(results)
