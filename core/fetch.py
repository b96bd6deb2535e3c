"""Readers for the published catalog and per-(date, network) result indices."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

import httpx

from core.filters import DashboardFilters, DateRange, filter_catalog, resolve_date_range
from core.records import TestRunRecord
from core.settings import SourceSettings
from core.state import DashboardState, ResultStore, with_store


logger = logging.getLogger(__name__)

NO_DATA_MESSAGE = "No test data available yet. Run some tests first!"


class DataUnavailable(Exception):
    """The catalog could not be fetched, so there is nothing to show."""

    pass


@dataclass(frozen=True)
class CatalogEntry:
    date: str
    network: str

    @property
    def day(self) -> date:
        return date.fromisoformat(self.date)


def _parse_catalog_entry(raw: object) -> Optional[CatalogEntry]:
    if not isinstance(raw, dict):
        return None
    day = str(raw.get("date") or "")
    network = str(raw.get("network") or "")
    try:
        date.fromisoformat(day)
    except ValueError:
        return None
    if not network:
        return None
    return CatalogEntry(date=day, network=network)


def make_client(settings: SourceSettings) -> httpx.Client:
    return httpx.Client(timeout=settings.fetch_timeout, follow_redirects=True)


def fetch_catalog(client: httpx.Client, settings: SourceSettings) -> List[CatalogEntry]:
    url = settings.catalog_url()
    try:
        response = client.get(url)
    except httpx.HTTPError as exc:
        raise DataUnavailable(f"{NO_DATA_MESSAGE} ({type(exc).__name__}: {exc})") from exc
    if not response.is_success:
        logger.error("Catalog fetch returned HTTP %s for %s", response.status_code, url)
        raise DataUnavailable(NO_DATA_MESSAGE)
    try:
        payload = response.json()
    except ValueError as exc:
        raise DataUnavailable(f"Malformed catalog at {url}") from exc
    if not isinstance(payload, dict):
        raise DataUnavailable(f"Malformed catalog at {url}")

    entries: List[CatalogEntry] = []
    for raw in payload.get("dates") or []:
        entry = _parse_catalog_entry(raw)
        if entry is None:
            logger.warning("Skipping malformed catalog entry: %r", raw)
            continue
        entries.append(entry)
    return entries


def fetch_index_records(client: httpx.Client, settings: SourceSettings, entry: CatalogEntry) -> List[TestRunRecord]:
    """Records of one index, decorated with the entry's date and network.

    A non-2xx response yields no records. Transport and decoding errors propagate.
    """
    url = settings.index_url(entry.date, entry.network)
    response = client.get(url)
    if not response.is_success:
        logger.warning("No index for %s/%s (HTTP %s)", entry.date, entry.network, response.status_code)
        return []
    index = response.json()
    records: List[TestRunRecord] = []
    for test in index["tests"]:
        record = TestRunRecord.from_metadata(test["metadata"], date=entry.date, network=entry.network)
        if record is not None:
            records.append(record)
    return records


def load_result_store(client: httpx.Client, settings: SourceSettings, date_range: DateRange) -> ResultStore:
    """Fetch the catalog, then each index in range one at a time.

    Raises DataUnavailable when the catalog itself is missing. Failures of
    single indices are logged and skipped.
    """
    catalog = fetch_catalog(client, settings)
    relevant = filter_catalog(catalog, date_range)
    logger.info("Loading %d of %d catalog entries (%s..%s)", len(relevant), len(catalog), date_range.start, date_range.end)

    records: List[TestRunRecord] = []
    networks = set()
    skipped: List[CatalogEntry] = []
    for entry in relevant:
        networks.add(entry.network)
        try:
            records.extend(fetch_index_records(client, settings, entry))
        except Exception:
            logger.exception("Error loading %s/%s", entry.date, entry.network)
            skipped.append(entry)

    return ResultStore(
        records=tuple(records),
        networks=frozenset(networks),
        date_range=date_range,
        skipped=tuple((e.date, e.network) for e in skipped),
    )


def load_dashboard_state(
    settings: SourceSettings,
    filters: DashboardFilters,
    *,
    today: Optional[date] = None,
    client: Optional[httpx.Client] = None,
) -> DashboardState:
    """Run one full load cycle for ``filters`` and return the resulting state.

    Raises DataUnavailable when the catalog is missing.
    """
    date_range = resolve_date_range(filters, today)
    if client is not None:
        store = load_result_store(client, settings, date_range)
    else:
        with make_client(settings) as owned:
            store = load_result_store(owned, settings, date_range)
    return with_store(DashboardState(filters=filters), store)
