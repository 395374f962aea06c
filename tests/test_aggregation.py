from __future__ import annotations

from datetime import date

import pytest

from martelinho.finance.aggregate import sum_service_values, summarize_windows
from martelinho.models import TimeWindow
from martelinho.services.repository import StorageUnavailableError


def _window(label: str, start: date, end: date) -> TimeWindow:
    return TimeWindow(label=label, start=start, end=end)


def test_sum_of_empty_record_set_is_zero() -> None:
    assert sum_service_values([]) == (0.0, 0)


def test_malformed_value_counts_but_adds_nothing() -> None:
    total, count = sum_service_values([
        {"service_value": "abc"},
        {"service_value": "150.5"},
        {"service_value": 49.5},
        {},
    ])
    assert total == 200.0
    assert count == 4


def test_summarize_windows_preserves_order_and_scopes_tenant(repo, services_collection, make_doc) -> None:
    for doc in [
        make_doc("1", "2024-01-15", 100),
        make_doc("2", "2024-02-10", 150),
        make_doc("3", "2024-02-20", "50"),
        make_doc("4", "2024-02-21", 999, tenant_id="tenant-b"),
    ]:
        services_collection.insert_one(doc)

    windows = [
        _window("fev", date(2024, 2, 1), date(2024, 2, 29)),
        _window("vazio", date(2023, 5, 1), date(2023, 5, 31)),
        _window("jan", date(2024, 1, 1), date(2024, 1, 31)),
    ]
    out = summarize_windows(repo, "tenant-a", windows)

    assert [(s.period, s.total, s.count) for s in out] == [
        ("fev", 200.0, 2),
        ("vazio", 0.0, 0),
        ("jan", 100.0, 1),
    ]
    assert all(q["tenant_id"] == "tenant-a" for q in services_collection.queries)


def test_window_bounds_are_inclusive(repo, services_collection, make_doc) -> None:
    services_collection.insert_one(make_doc("1", "2024-02-01", 10))
    services_collection.insert_one(make_doc("2", "2024-02-29", 20))
    services_collection.insert_one(make_doc("3", "2024-03-01", 40))

    [summary] = summarize_windows(repo, "tenant-a", [_window("fev", date(2024, 2, 1), date(2024, 2, 29))])
    assert (summary.total, summary.count) == (30.0, 2)


class _FailingOnWindow:
    def __init__(self, inner, bad_start: date) -> None:
        self.inner = inner
        self.bad_start = bad_start

    def find_in_range(self, tenant_id, start, end, fields=None):
        if start == self.bad_start:
            raise StorageUnavailableError("boom")
        return self.inner.find_in_range(tenant_id, start, end, fields)


def test_one_failing_window_fails_the_whole_report(repo) -> None:
    windows = [
        _window("a", date(2024, 1, 1), date(2024, 1, 31)),
        _window("b", date(2024, 2, 1), date(2024, 2, 29)),
    ]
    with pytest.raises(StorageUnavailableError):
        summarize_windows(_FailingOnWindow(repo, date(2024, 2, 1)), "tenant-a", windows)


def test_storage_outage_surfaces_as_storage_unavailable(repo, services_collection) -> None:
    services_collection.fail = True
    with pytest.raises(StorageUnavailableError):
        summarize_windows(repo, "tenant-a", [_window("a", date(2024, 1, 1), date(2024, 1, 31))])


def test_tenant_is_required(repo) -> None:
    with pytest.raises(ValueError):
        summarize_windows(repo, "", [_window("a", date(2024, 1, 1), date(2024, 1, 31))])
