from __future__ import annotations

from typing import Any, Dict, Sequence

import pandas as pd

from core.data import STATUS_FAILURE, STATUS_SUCCESS, format_size_gb, records_frame, round_half_up
from core.records import TestRunRecord


def _mean_size(df: pd.DataFrame, col: str) -> str:
    values = df[col].dropna()
    if values.empty:
        return format_size_gb(None)
    return format_size_gb(float(values.mean()))


def compute_summary(records: Sequence[TestRunRecord]) -> Dict[str, Any]:
    df = records_frame(records)
    total = int(len(df))
    successful = int((df["result"] == STATUS_SUCCESS).sum())
    failed = int((df["result"] == STATUS_FAILURE).sum())
    success_rate = int(round_half_up(successful / total * 100)) if total else 0
    return {
        "total": total,
        "successful": successful,
        "failed": failed,
        "success_rate": success_rate,
        "avg_el_db_size": _mean_size(df, "el_db_gb"),
        "avg_cl_db_size": _mean_size(df, "cl_db_gb"),
    }
