from datetime import date

import httpx
import pytest
from pytest_httpx import HTTPXMock

from core.fetch import (
    NO_DATA_MESSAGE,
    CatalogEntry,
    DataUnavailable,
    fetch_catalog,
    fetch_index_records,
    load_dashboard_state,
    load_result_store,
)
from core.filters import DashboardFilters, DateRange
from core.settings import SourceSettings


CATALOG = {
    "dates": [
        {"date": "2024-03-08", "network": "hoodi"},
        {"date": "2024-03-09", "network": "hoodi"},
        {"date": "2024-03-09", "network": "sepolia"},
        {"date": "2024-02-01", "network": "mainnet"},
        {"date": "not-a-date", "network": "hoodi"},
    ]
}


def _index(*metadata: dict) -> dict:
    return {"tests": [{"metadata": m} for m in metadata]}


@pytest.fixture(scope="function")
def client():
    with httpx.Client() as c:
        yield c


def test_fetch_catalog_skips_malformed_entries(httpx_mock: HTTPXMock, client: httpx.Client, settings: SourceSettings) -> None:
    httpx_mock.add_response(url=settings.catalog_url(), json=CATALOG)
    entries = fetch_catalog(client, settings)
    assert entries[0] == CatalogEntry("2024-03-08", "hoodi")
    assert len(entries) == 4


def test_fetch_catalog_missing_is_fatal(httpx_mock: HTTPXMock, client: httpx.Client, settings: SourceSettings) -> None:
    httpx_mock.add_response(url=settings.catalog_url(), status_code=404)
    with pytest.raises(DataUnavailable, match="No test data available yet"):
        fetch_catalog(client, settings)


def test_fetch_catalog_network_error_is_fatal(httpx_mock: HTTPXMock, client: httpx.Client, settings: SourceSettings) -> None:
    httpx_mock.add_exception(httpx.ConnectError("connection refused"), url=settings.catalog_url())
    with pytest.raises(DataUnavailable) as excinfo:
        fetch_catalog(client, settings)
    assert NO_DATA_MESSAGE in str(excinfo.value)


def test_fetch_index_records_decorates(httpx_mock: HTTPXMock, client: httpx.Client, settings: SourceSettings) -> None:
    entry = CatalogEntry("2024-03-09", "hoodi")
    httpx_mock.add_response(
        url=settings.index_url(entry.date, entry.network),
        json=_index(
            {"el_client": "geth", "cl_client": "teku", "start_time": 10, "result": "success"},
            {"el_client": "reth", "cl_client": "prysm", "result": "failure"},
        ),
    )
    records = fetch_index_records(client, settings, entry)
    assert len(records) == 1
    assert records[0].date == "2024-03-09"
    assert records[0].network == "hoodi"


def test_fetch_index_records_missing_index_is_empty(httpx_mock: HTTPXMock, client: httpx.Client, settings: SourceSettings) -> None:
    entry = CatalogEntry("2024-03-09", "hoodi")
    httpx_mock.add_response(url=settings.index_url(entry.date, entry.network), status_code=404)
    assert fetch_index_records(client, settings, entry) == []


def test_load_result_store_tolerates_failed_entries(httpx_mock: HTTPXMock, client: httpx.Client, settings: SourceSettings) -> None:
    httpx_mock.add_response(url=settings.catalog_url(), json=CATALOG)
    httpx_mock.add_response(
        url=settings.index_url("2024-03-08", "hoodi"),
        json=_index({"el_client": "geth", "cl_client": "teku", "start_time": 10, "result": "success"}),
    )
    httpx_mock.add_exception(httpx.ReadError("reset"), url=settings.index_url("2024-03-09", "hoodi"))
    httpx_mock.add_response(
        url=settings.index_url("2024-03-09", "sepolia"),
        json=_index({"el_client": "besu", "cl_client": "nimbus", "start_time": 20, "result": "failure"}),
    )

    store = load_result_store(client, settings, DateRange(start=date(2024, 3, 8), end=date(2024, 3, 10)))

    assert [r.el_client for r in store.records] == ["geth", "besu"]
    assert store.sorted_networks() == ["hoodi", "sepolia"]
    assert store.skipped == (("2024-03-09", "hoodi"),)
    requested = [str(r.url) for r in httpx_mock.get_requests()]
    assert settings.index_url("2024-02-01", "mainnet") not in requested


def test_load_result_store_malformed_index_is_skipped(httpx_mock: HTTPXMock, client: httpx.Client, settings: SourceSettings) -> None:
    httpx_mock.add_response(url=settings.catalog_url(), json={"dates": [{"date": "2024-03-08", "network": "hoodi"}]})
    httpx_mock.add_response(url=settings.index_url("2024-03-08", "hoodi"), json={"unexpected": True})
    store = load_result_store(client, settings, DateRange(start=date(2024, 3, 8), end=date(2024, 3, 8)))
    assert store.records == ()
    assert store.networks == frozenset({"hoodi"})


def test_load_dashboard_state_applies_filters(httpx_mock: HTTPXMock, client: httpx.Client, settings: SourceSettings) -> None:
    httpx_mock.add_response(url=settings.catalog_url(), json={"dates": [{"date": "2024-03-09", "network": "hoodi"}]})
    httpx_mock.add_response(
        url=settings.index_url("2024-03-09", "hoodi"),
        json=_index(
            {"el_client": "geth", "cl_client": "teku", "start_time": 10, "result": "success"},
            {"el_client": "geth", "cl_client": "teku", "start_time": 30, "result": "failure"},
            {"el_client": "reth", "cl_client": "teku", "start_time": 20, "result": "success"},
        ),
    )
    state = load_dashboard_state(
        settings, DashboardFilters(el_client="geth", range_days=3), today=date(2024, 3, 10), client=client
    )
    assert len(state.store.records) == 3
    assert [r.start_time for r in state.filtered] == [30, 10]
    assert state.error is None
