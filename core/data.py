from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional, Sequence

import pandas as pd

from core.records import TestRunRecord


NA_TEXT = "N/A"
SIZE_SUFFIX = "GB"

STATUS_SUCCESS = "success"
STATUS_FAILURE = "failure"

STATUS_COLORS = {
    STATUS_SUCCESS: "#28a745",
    STATUS_FAILURE: "#d73a49",
}
STATUS_COLOR_DEFAULT = "#6a737d"

FRAME_COLUMNS = [
    "date",
    "network",
    "el_client",
    "cl_client",
    "result",
    "start_time",
    "end_time",
    "duration",
    "test_type",
    "run_id",
    "run_number",
    "actor",
    "workflow",
    "el_db_size",
    "cl_db_size",
    "el_db_gb",
    "cl_db_gb",
]

_LEADING_NUMBER = re.compile(r"^\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)")


def parse_db_size(value: object) -> Optional[float]:
    """Parse ``"12.5GB"`` -> 12.5. Absent, ``"N/A"`` and unparseable values give None."""
    if value is None:
        return None
    s = str(value).strip()
    if not s or s.upper() == NA_TEXT:
        return None
    match = _LEADING_NUMBER.match(s)
    if not match:
        return None
    size = float(match.group(1))
    return size if math.isfinite(size) else None


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value) or not math.isfinite(float(value)):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def format_size_gb(value: object) -> str:
    rounded = round_half_up(value, 1)
    if rounded is None:
        return NA_TEXT
    return f"{rounded:.1f} {SIZE_SUFFIX}"


def format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def format_duration(value: Optional[float]) -> str:
    if not value:
        return NA_TEXT
    return f"{format_number(value)}s"


def to_datetime(epoch_seconds: float) -> datetime:
    return datetime.fromtimestamp(epoch_seconds, tz=timezone.utc)


def format_date(epoch_seconds: Optional[float]) -> str:
    if epoch_seconds is None:
        return NA_TEXT
    return to_datetime(epoch_seconds).strftime("%Y-%m-%d")


def format_time(epoch_seconds: Optional[float]) -> str:
    if epoch_seconds is None:
        return NA_TEXT
    return to_datetime(epoch_seconds).strftime("%H:%M:%S UTC")


def format_timestamp(epoch_seconds: Optional[float]) -> str:
    if epoch_seconds is None:
        return NA_TEXT
    return to_datetime(epoch_seconds).strftime("%Y-%m-%d %H:%M:%S UTC")


def status_color(result: Optional[str]) -> str:
    return STATUS_COLORS.get(result or "", STATUS_COLOR_DEFAULT)


def numericize(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce")
    return df


def records_frame(records: Sequence[TestRunRecord]) -> pd.DataFrame:
    """Flatten records into a frame, one row per run, in the given order."""
    rows: List[dict] = []
    for r in records:
        rows.append(
            {
                "date": r.date,
                "network": r.network,
                "el_client": r.el_client,
                "cl_client": r.cl_client,
                "result": r.result,
                "start_time": r.start_time,
                "end_time": r.end_time,
                "duration": r.duration,
                "test_type": r.test_type,
                "run_id": r.run_id,
                "run_number": r.run_number,
                "actor": r.github.actor if r.github else None,
                "workflow": r.github.workflow if r.github else None,
                "el_db_size": r.el_db_size,
                "cl_db_size": r.cl_db_size,
                "el_db_gb": parse_db_size(r.el_db_size),
                "cl_db_gb": parse_db_size(r.cl_db_size),
            }
        )
    df = pd.DataFrame(rows, columns=FRAME_COLUMNS)
    return numericize(df, ["start_time", "end_time", "duration", "el_db_gb", "cl_db_gb"])


def distinct_values(records: Iterable[TestRunRecord], attr: str) -> List[str]:
    return sorted({str(getattr(r, attr)) for r in records if getattr(r, attr)})
