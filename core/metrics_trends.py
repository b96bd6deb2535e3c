from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from core.data import STATUS_FAILURE, STATUS_SUCCESS, records_frame
from core.records import TestRunRecord


@dataclass(frozen=True)
class TrendData:
    dates: List[str] = field(default_factory=list)
    success: List[int] = field(default_factory=list)
    failure: List[int] = field(default_factory=list)
    avg_el_db_gb: List[Optional[float]] = field(default_factory=list)
    avg_cl_db_gb: List[Optional[float]] = field(default_factory=list)

    def pass_fail_frame(self) -> pd.DataFrame:
        rows = [{"date": d, "series": "Successful Tests", "count": s} for d, s in zip(self.dates, self.success)]
        rows += [{"date": d, "series": "Failed Tests", "count": f} for d, f in zip(self.dates, self.failure)]
        return pd.DataFrame(rows, columns=["date", "series", "count"])

    def db_size_frame(self) -> pd.DataFrame:
        rows = [{"date": d, "series": "EL DB Size", "size_gb": v} for d, v in zip(self.dates, self.avg_el_db_gb)]
        rows += [{"date": d, "series": "CL DB Size", "size_gb": v} for d, v in zip(self.dates, self.avg_cl_db_gb)]
        return pd.DataFrame(rows, columns=["date", "series", "size_gb"])

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _nullable(value: object) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    return float(value)


def compute_trends(records: Sequence[TestRunRecord]) -> TrendData:
    """Per-date pass/fail counts and mean DB sizes; dates without a parseable size stay None."""
    df = records_frame(records)
    if df.empty:
        return TrendData()

    df["is_success"] = (df["result"] == STATUS_SUCCESS).astype(int)
    df["is_failure"] = (df["result"] == STATUS_FAILURE).astype(int)
    by_date = (
        df.groupby("date", sort=True)
        .agg(
            success=("is_success", "sum"),
            failure=("is_failure", "sum"),
            avg_el_db_gb=("el_db_gb", "mean"),
            avg_cl_db_gb=("cl_db_gb", "mean"),
        )
        .reset_index()
    )
    return TrendData(
        dates=[str(d) for d in by_date["date"]],
        success=[int(v) for v in by_date["success"]],
        failure=[int(v) for v in by_date["failure"]],
        avg_el_db_gb=[_nullable(v) for v in by_date["avg_el_db_gb"]],
        avg_cl_db_gb=[_nullable(v) for v in by_date["avg_cl_db_gb"]],
    )
