from __future__ import annotations

from datetime import date

import pytest

from martelinho.finance.summary import (
    build_dashboard_report,
    get_current_period_summaries,
    get_growth_series,
    get_month_detail,
    get_trailing_monthly_summaries,
)
from martelinho.finance.tracker import ReportRequestTracker
from martelinho.services.repository import StorageUnavailableError


@pytest.fixture
def seeded(services_collection, make_doc):
    for doc in [
        make_doc("s1", "2024-01-15", 100),
        make_doc("s2", "2024-02-10", 150),
        make_doc("s3", "2024-02-20", 50),
    ]:
        services_collection.insert_one(doc)
    return services_collection


def test_trailing_two_months_and_growth(repo, seeded) -> None:
    monthly = get_trailing_monthly_summaries(repo, "tenant-a", date(2024, 3, 1), 2)
    assert [(m.period, m.total, m.count) for m in monthly] == [
        ("fevereiro 2024", 200.0, 2),
        ("janeiro 2024", 100.0, 1),
    ]
    assert get_growth_series(monthly) == [100.0, None]


def test_current_period_summaries(repo, seeded) -> None:
    out = get_current_period_summaries(repo, "tenant-a", date(2024, 2, 20))
    by_label = {s.period: (s.total, s.count) for s in out}
    assert by_label == {
        "Hoje": (50.0, 1),
        "Esta Semana": (50.0, 1),
        "Este Mês": (200.0, 2),
        "Este Ano": (300.0, 3),
        "Últimos 30 dias": (200.0, 2),
    }


def test_month_detail(repo, seeded) -> None:
    detail = get_month_detail(repo, "tenant-a", date(2024, 2, 5))
    assert detail.month.label == "fevereiro 2024"
    assert [r.id for r in detail.records] == ["s3", "s2"]
    assert detail.total == 200.0
    assert detail.average == 100.0


def test_month_detail_without_records(repo, seeded) -> None:
    detail = get_month_detail(repo, "tenant-a", date(2023, 7, 1))
    assert detail.records == []
    assert (detail.total, detail.average) == (0.0, 0.0)


def test_dashboard_report_is_all_or_nothing(repo, seeded) -> None:
    seeded.fail = True
    with pytest.raises(StorageUnavailableError):
        build_dashboard_report(repo, "tenant-a", date(2024, 3, 1), generation=1)


def test_dashboard_report(repo, seeded) -> None:
    report = build_dashboard_report(
        repo, "tenant-a", date(2024, 3, 1), generation=7, months=2, selected_month=date(2024, 1, 1)
    )
    assert report.generation == 7
    assert report.reference == date(2024, 3, 1)
    assert len(report.current) == 5
    assert report.growth == [100.0, None]
    assert report.selected is not None and report.selected.total == 100.0


def test_superseded_request_result_is_discarded(repo, seeded) -> None:
    tracker: ReportRequestTracker = ReportRequestTracker()

    first = tracker.begin()
    second = tracker.begin()

    second_report = build_dashboard_report(
        repo, "tenant-a", date(2024, 3, 1), second, selected_month=date(2024, 2, 1)
    )
    first_report = build_dashboard_report(
        repo, "tenant-a", date(2024, 3, 1), first, selected_month=date(2024, 1, 1)
    )

    assert tracker.apply(second, second_report) is True
    # the first request finishes last and must not overwrite the newer result
    assert tracker.apply(first, first_report) is False
    assert tracker.result is second_report
    assert tracker.result.selected.month.label == "fevereiro 2024"


def test_cancel_drops_in_flight_request() -> None:
    tracker: ReportRequestTracker[str] = ReportRequestTracker()
    gen = tracker.begin()
    tracker.cancel()
    assert not tracker.is_current(gen)
    assert tracker.apply(gen, "late") is False
    assert tracker.result is None


def test_time_stamped_record_on_last_day_is_included(repo, services_collection, make_doc) -> None:
    services_collection.insert_one(make_doc("t1", "2024-02-29T12:00:00Z", 100))

    feb = get_trailing_monthly_summaries(repo, "tenant-a", date(2024, 3, 10), 1)[0]
    today = get_current_period_summaries(repo, "tenant-a", date(2024, 2, 29))[0]
    detail = get_month_detail(repo, "tenant-a", date(2024, 2, 1))

    assert (feb.total, feb.count) == (100.0, 1)
    assert (today.period, today.total, today.count) == ("Hoje", 100.0, 1)
    assert [r.id for r in detail.records] == ["t1"]


def test_month_detail_totals_match_monthly_summary(repo, services_collection, make_doc) -> None:
    services_collection.insert_one(make_doc("ok", "2024-02-10", 100))
    # "motor" is outside the parts vocabulary, so the record is not listed
    services_collection.insert_one(make_doc("bad", "2024-02-12", 50, repaired_parts=["motor"]))

    feb = get_trailing_monthly_summaries(repo, "tenant-a", date(2024, 3, 1), 1)[0]
    detail = get_month_detail(repo, "tenant-a", date(2024, 2, 1))

    assert (detail.total, detail.count) == (feb.total, feb.count) == (150.0, 2)
    assert detail.average == 75.0
    assert [r.id for r in detail.records] == ["ok"]
    assert detail.skipped == 1
