from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, List, Optional, Sequence, TYPE_CHECKING

from core.records import TestRunRecord

if TYPE_CHECKING:
    from core.fetch import CatalogEntry


CUSTOM_RANGE = "custom"
DATE_RANGE_PRESETS = [1, 3, 7, 14, 30]
MAX_RANGE_DAYS = 365
STATUS_OPTIONS = ["success", "failure"]

# Dropdown labels that stand for "no predicate".
ALL_SENTINELS = {"", "all", "all networks", "all el clients", "all cl clients", "all statuses"}


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


@dataclass(frozen=True)
class DashboardFilters:
    network: Optional[str] = None
    el_client: Optional[str] = None
    cl_client: Optional[str] = None
    status: Optional[str] = None
    range_days: Optional[int] = 3
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @property
    def is_custom_range(self) -> bool:
        return self.range_days is None


def _as_predicate(value: object) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    if s.lower() in ALL_SENTINELS:
        return None
    return s


def _as_date(value: object) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


def normalize_filters(raw: dict, *, default_days: int = 3) -> DashboardFilters:
    """Build filters from raw widget/API values.

    ``date_range`` is a preset day count or ``"custom"``; a custom range missing
    either boundary falls back to the default preset.
    """
    network = _as_predicate(raw.get("network"))
    el_client = _as_predicate(raw.get("el_client"))
    cl_client = _as_predicate(raw.get("cl_client"))
    status = _as_predicate(raw.get("status"))

    date_range = raw.get("date_range", default_days)
    start_date = _as_date(raw.get("start_date"))
    end_date = _as_date(raw.get("end_date"))

    if str(date_range).strip().lower() == CUSTOM_RANGE and start_date and end_date:
        range_days: Optional[int] = None
    else:
        try:
            range_days = int(date_range)
        except (TypeError, ValueError):
            range_days = default_days
        range_days = max(1, min(MAX_RANGE_DAYS, range_days))
        start_date = end_date = None

    return DashboardFilters(
        network=network,
        el_client=el_client,
        cl_client=cl_client,
        status=status,
        range_days=range_days,
        start_date=start_date,
        end_date=end_date,
    )


def resolve_date_range(filters: DashboardFilters, today: Optional[date] = None) -> DateRange:
    """Inclusive range of catalog dates to fetch. A preset of N days ends today and spans N calendar days."""
    if filters.is_custom_range and filters.start_date and filters.end_date:
        return DateRange(start=filters.start_date, end=filters.end_date)
    today = today or date.today()
    days = filters.range_days or 1
    return DateRange(start=today - timedelta(days=days - 1), end=today)


def filter_catalog(entries: Iterable["CatalogEntry"], date_range: DateRange) -> List["CatalogEntry"]:
    return [e for e in entries if date_range.contains(e.day)]


def matches(record: TestRunRecord, filters: DashboardFilters) -> bool:
    if filters.network and record.network != filters.network:
        return False
    if filters.el_client and record.el_client != filters.el_client:
        return False
    if filters.cl_client and record.cl_client != filters.cl_client:
        return False
    if filters.status and record.result != filters.status:
        return False
    return True


def apply_filters(records: Sequence[TestRunRecord], filters: DashboardFilters) -> List[TestRunRecord]:
    """Records matching every set predicate, most recent first.

    ``sorted`` is stable with ``reverse=True`` too, so runs sharing a start_time keep store order.
    """
    kept = [r for r in records if matches(r, filters)]
    return sorted(kept, key=lambda r: r.start_time, reverse=True)
