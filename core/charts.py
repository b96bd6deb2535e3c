from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

import altair as alt
import pandas as pd

from core.data import STATUS_COLORS, STATUS_FAILURE, STATUS_SUCCESS
from core.metrics_trends import TrendData

alt.data_transformers.disable_max_rows()

PASS_FAIL_SERIES = ["Successful Tests", "Failed Tests"]
DB_SIZE_SERIES = ["EL DB Size", "CL DB Size"]
DB_SIZE_COLORS = ["#0366d6", "#6f42c1"]


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def with_gap_segments(frame: pd.DataFrame, value_col: str) -> pd.DataFrame:
    """Number the unbroken runs of values per series so lines are drawn per run and never bridge a gap."""
    out = frame.copy()
    missing = out[value_col].isna().astype(int)
    out["segment"] = missing.groupby(out["series"]).cumsum()
    out["segment"] = out["series"] + "-" + out["segment"].astype(str)
    return out


def date_scale(dates: Sequence[str]) -> alt.Scale:
    # Every trend date stays on the axis, even where a series has no value.
    return alt.Scale(domain=list(dates)) if dates else alt.Scale()


def build_pass_fail_chart(frame: pd.DataFrame, dates: Sequence[str] = ()) -> alt.Chart:
    hover = alt.selection_point(fields=["series"], on="mouseover", empty="all")
    return (
        alt.Chart(frame)
        .mark_line(point={"filled": True, "size": 60})
        .encode(
            x=alt.X("date:O", title="Date", scale=date_scale(dates), axis=alt.Axis(grid=False, labelAngle=-30)),
            y=alt.Y(
                "count:Q",
                title="Tests",
                scale=alt.Scale(zero=True),
                axis=alt.Axis(format="d", tickMinStep=1, gridDash=[4, 4], domain=False, ticks=False),
            ),
            color=alt.Color(
                "series:N",
                title=None,
                scale=alt.Scale(domain=PASS_FAIL_SERIES, range=[STATUS_COLORS[STATUS_SUCCESS], STATUS_COLORS[STATUS_FAILURE]]),
                legend=alt.Legend(orient="bottom"),
            ),
            opacity=alt.condition(hover, alt.value(1), alt.value(0.2)),
            tooltip=[alt.Tooltip("date:O", title="Date"), alt.Tooltip("series:N", title="Series"), alt.Tooltip("count:Q", title="Count")],
        )
        .add_params(hover)
        .properties(title="Test Results Over Time", height=260)
    )


def build_db_size_chart(frame: pd.DataFrame, dates: Sequence[str] = ()) -> alt.Chart:
    return (
        alt.Chart(frame)
        .mark_line(point={"filled": True, "size": 60})
        .encode(
            x=alt.X("date:O", title="Date", scale=date_scale(dates), axis=alt.Axis(grid=False, labelAngle=-30)),
            y=alt.Y("size_gb:Q", title="Average DB Size (GB)", axis=alt.Axis(gridDash=[4, 4], domain=False, ticks=False)),
            color=alt.Color(
                "series:N",
                title=None,
                scale=alt.Scale(domain=DB_SIZE_SERIES, range=DB_SIZE_COLORS),
                legend=alt.Legend(orient="bottom"),
            ),
            detail="segment:N",
            tooltip=[
                alt.Tooltip("date:O", title="Date"),
                alt.Tooltip("series:N", title="Series"),
                alt.Tooltip("size_gb:Q", title="GB", format=".1f"),
            ],
        )
        .properties(title="Average Database Size Over Time", height=260)
    )


class TrendCharts:
    """Holds the two trend chart instances; redraws update data in place once they exist."""

    def __init__(self) -> None:
        self.pass_fail: Optional[alt.Chart] = None
        self.db_size: Optional[alt.Chart] = None

    def redraw(self, trends: TrendData) -> "TrendCharts":
        pass_fail_frame = trends.pass_fail_frame()
        db_size_frame = with_gap_segments(trends.db_size_frame(), "size_gb")
        if self.pass_fail is None:
            self.pass_fail = build_pass_fail_chart(pass_fail_frame, trends.dates)
        else:
            self.pass_fail.data = pass_fail_frame
            self.pass_fail.encoding.x.scale = date_scale(trends.dates)
        if self.db_size is None:
            self.db_size = build_db_size_chart(db_size_frame, trends.dates)
        else:
            self.db_size.data = db_size_frame
            self.db_size.encoding.x.scale = date_scale(trends.dates)
        return self

    def to_specs(self) -> Dict[str, Any]:
        charts: Dict[str, Any] = {}
        if self.pass_fail is not None:
            charts["pass_fail_trend"] = to_vega_spec(self.pass_fail)
        if self.db_size is not None:
            charts["db_size_trend"] = to_vega_spec(self.db_size)
        return charts
