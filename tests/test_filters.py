from datetime import date

import pytest

from core.fetch import CatalogEntry
from core.filters import (
    MAX_RANGE_DAYS,
    DashboardFilters,
    DateRange,
    apply_filters,
    filter_catalog,
    normalize_filters,
    resolve_date_range,
)


def test_no_predicates_sorts_most_recent_first(make_record) -> None:
    records = [
        make_record(date="2024-01-01", result="success", start_time=100),
        make_record(date="2024-01-01", result="failure", start_time=200),
    ]
    filtered = apply_filters(records, DashboardFilters())
    assert [r.start_time for r in filtered] == [200, 100]


def test_equal_start_times_keep_store_order(make_record) -> None:
    records = [
        make_record(start_time=100, el_client="a"),
        make_record(start_time=100, el_client="b"),
        make_record(start_time=500, el_client="c"),
        make_record(start_time=100, el_client="d"),
    ]
    filtered = apply_filters(records, DashboardFilters())
    assert [r.el_client for r in filtered] == ["c", "a", "b", "d"]


@pytest.mark.parametrize(
    "filters",
    [
        DashboardFilters(network="hoodi"),
        DashboardFilters(el_client="nethermind"),
        DashboardFilters(cl_client="teku"),
        DashboardFilters(status="success"),
        DashboardFilters(network="hoodi", status="success"),
        DashboardFilters(network="hoodi", cl_client="lighthouse", status="timeout"),
        DashboardFilters(network="mainnet"),
    ],
)
def test_filtered_is_exact_subset(mixed_records, filters: DashboardFilters) -> None:
    filtered = apply_filters(mixed_records, filters)
    expected = [
        r
        for r in mixed_records
        if (not filters.network or r.network == filters.network)
        and (not filters.el_client or r.el_client == filters.el_client)
        and (not filters.cl_client or r.cl_client == filters.cl_client)
        and (not filters.status or r.result == filters.status)
    ]
    assert sorted(map(id, filtered)) == sorted(map(id, expected))
    for a, b in zip(filtered, filtered[1:]):
        assert a.start_time >= b.start_time


def test_reapplying_filters_is_idempotent(mixed_records) -> None:
    filters = DashboardFilters(network="hoodi")
    assert apply_filters(mixed_records, filters) == apply_filters(mixed_records, filters)


def test_normalize_filters_treats_sentinels_as_unset() -> None:
    filters = normalize_filters(
        {"network": "All Networks", "el_client": "", "cl_client": " teku ", "status": "failure", "date_range": "7"}
    )
    assert filters == DashboardFilters(network=None, el_client=None, cl_client="teku", status="failure", range_days=7)


def test_normalize_filters_custom_range() -> None:
    filters = normalize_filters({"date_range": "custom", "start_date": "2024-01-01", "end_date": date(2024, 1, 5)})
    assert filters.is_custom_range
    assert resolve_date_range(filters) == DateRange(start=date(2024, 1, 1), end=date(2024, 1, 5))


def test_normalize_filters_incomplete_custom_range_uses_default() -> None:
    filters = normalize_filters({"date_range": "custom", "start_date": "2024-01-01"}, default_days=5)
    assert filters.range_days == 5
    assert filters.start_date is None


@pytest.mark.parametrize("date_range, expected", [(1_000_000, MAX_RANGE_DAYS), ("-4", 1), (0, 1), ("30", 30)])
def test_normalize_filters_clamps_preset_range(date_range: object, expected: int) -> None:
    filters = normalize_filters({"date_range": date_range})
    assert filters.range_days == expected
    today = date(2024, 3, 10)
    assert resolve_date_range(filters, today).end == today


def test_preset_range_spans_n_calendar_days_ending_today() -> None:
    today = date(2024, 3, 10)
    assert resolve_date_range(DashboardFilters(range_days=3), today) == DateRange(start=date(2024, 3, 8), end=today)
    assert resolve_date_range(DashboardFilters(range_days=1), today) == DateRange(start=today, end=today)


def test_filter_catalog_is_inclusive() -> None:
    entries = [
        CatalogEntry("2024-03-07", "hoodi"),
        CatalogEntry("2024-03-08", "hoodi"),
        CatalogEntry("2024-03-10", "sepolia"),
        CatalogEntry("2024-03-11", "hoodi"),
    ]
    kept = filter_catalog(entries, DateRange(start=date(2024, 3, 8), end=date(2024, 3, 10)))
    assert kept == entries[1:3]
