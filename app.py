import html
import logging
import os
from contextlib import contextmanager
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

import altair as alt
import pandas as pd
import streamlit as st

from core.cards import build_cards, build_detail
from core.charts import TrendCharts
from core.data import records_frame
from core.fetch import DataUnavailable, load_dashboard_state
from core.filters import (
    CUSTOM_RANGE,
    DATE_RANGE_PRESETS,
    STATUS_OPTIONS,
    DashboardFilters,
    normalize_filters,
    resolve_date_range,
)
from core.metrics_summary import compute_summary
from core.metrics_trends import compute_trends
from core.router import DetailView, back, fragment_for, parse_fragment
from core.settings import load_settings
from core.state import DashboardState, with_filters, with_fragment, with_load_error

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("sync_dashboard")

alt.data_transformers.disable_max_rows()

VIEW_PARAM = "view"
ALL_NETWORKS = "All Networks"
ALL_EL = "All EL Clients"
ALL_CL = "All CL Clients"
ALL_STATUSES = "All Statuses"


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #6b7280;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-header {display: flex;justify-content: space-between;align-items: center;margin-bottom: 8px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .card-actions {font-size: 0.9rem;color: #2563eb;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        .result-card {border: 1px solid #e1e4e8;border-radius: 10px;padding: 14px;background: #fff;margin-bottom: 6px;}
        .client-pair {font-weight: 600;font-size: 1.05rem;color: #24292e;}
        .test-type {font-size: 0.75rem;background: #f1f8ff;color: #0366d6;border-radius: 10px;padding: 2px 8px;margin-left: 6px;}
        .metadata-grid {display: grid;grid-template-columns: 1fr 1fr;gap: 4px 12px;margin: 10px 0;}
        .metadata-label {display: block;font-size: 0.72rem;color: #586069;text-transform: uppercase;}
        .metadata-value {font-size: 0.9rem;color: #24292e;}
        .status-badge {display: inline-block;color: #fff;border-radius: 12px;padding: 2px 10px;font-size: 0.8rem;font-weight: 600;}
        .timeline-marker {display: inline-block;width: 10px;height: 10px;border-radius: 50%;margin-right: 8px;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str, actions: Optional[str] = None):
    container = st.container()
    container.markdown(
        f"""
        <div class="card">
          <div class="card-header">
            <div class="card-title">{title}</div>
            <div class="card-actions">{actions or ""}</div>
          </div>
        """,
        unsafe_allow_html=True,
    )
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_filter_summary(filters: DashboardFilters) -> str:
    date_range = resolve_date_range(filters)
    chips = [
        f"Dates: {date_range.start.isoformat()} – {date_range.end.isoformat()}",
        f"Network: {filters.network or 'All'}",
        f"EL: {filters.el_client or 'All'}",
        f"CL: {filters.cl_client or 'All'}",
        f"Status: {filters.status or 'All'}",
    ]
    return "".join([f"<span class='chip'>{html.escape(txt)}</span>" for txt in chips])


def render_page_header(title: str, breadcrumb: str, filter_summary_html: str, export_df: Optional[pd.DataFrame] = None, export_name: str = "export.csv"):
    inject_base_styles()
    top = st.container()
    c1, c2 = top.columns([7, 3])
    with c1:
        st.markdown(
            f"<div class='app-top-bar'><div class='breadcrumb'>{breadcrumb}</div><div class='page-title'>{title}</div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        btn_cols = st.columns(2)
        if btn_cols[0].button("Refresh"):
            st.session_state["force_reload"] = True
            st.rerun()
        if export_df is not None and not export_df.empty:
            btn_cols[1].download_button(
                "Export CSV",
                data=export_df.to_csv(index=False).encode("utf-8"),
                file_name=export_name,
                mime="text/csv",
            )
    st.markdown(f"<div class='chip-row'>{filter_summary_html}</div>", unsafe_allow_html=True)


def _select_index(options: List[str], current: Optional[str]) -> int:
    return options.index(current) if current in options else 0


def _range_label(value: str) -> str:
    if value == CUSTOM_RANGE:
        return "Custom range"
    days = int(value)
    return "Last day" if days == 1 else f"Last {days} days"


# ---------- Navigation ----------
def open_run(identifier: str):
    st.query_params[VIEW_PARAM] = fragment_for(DetailView(identifier))


def back_to_list():
    fragment = fragment_for(back())
    if fragment:
        st.query_params[VIEW_PARAM] = fragment
    elif VIEW_PARAM in st.query_params:
        del st.query_params[VIEW_PARAM]


# ---------- Renderers ----------
def render_summary(summary: Dict[str, Any]):
    cols = st.columns(6)
    cols[0].metric("Total Tests", summary["total"])
    cols[1].metric("Successful", summary["successful"])
    cols[2].metric("Failed", summary["failed"])
    cols[3].metric("Success Rate", f"{summary['success_rate']}%")
    cols[4].metric("Avg EL DB Size", summary["avg_el_db_size"])
    cols[5].metric("Avg CL DB Size", summary["avg_cl_db_size"])


def render_result_card(c: Dict[str, Any], key: str):
    e = {k: html.escape(str(v)) if v is not None else "" for k, v in c.items()}
    run_id_html = (
        f"<a href='{e['run_url']}' target='_blank' rel='noopener'>{e['run_id']}</a>" if c.get("run_url") else e["run_id"]
    )
    items = [
        ("Network", e["network"]),
        ("Date", e["start_date"]),
        ("Time", e["start_time"]),
        ("Duration", e["duration"]),
        ("Workflow", e["workflow"]),
        ("Actor", e["actor"]),
        ("Run ID", run_id_html),
        ("EL DB Size", e["el_db_size"]),
        ("CL DB Size", e["cl_db_size"]),
    ]
    grid = "".join(
        f"<div><span class='metadata-label'>{label}</span><span class='metadata-value'>{value}</span></div>" for label, value in items
    )
    st.markdown(
        f"""
        <div class="result-card">
          <div class="client-pair">{e['client_pair']}<span class="test-type">{e['test_type']}</span></div>
          <div class="metadata-grid">{grid}</div>
          <span class="status-badge" style="background:{e['status_color']}">{e['status']}</span>
        </div>
        """,
        unsafe_allow_html=True,
    )
    st.button("View details", key=key, on_click=open_run, args=(c["identifier"],), use_container_width=True)


def render_results_grid(cards: List[Dict[str, Any]], per_row: int = 3):
    if not cards:
        st.info("No test results found for the selected filters.")
        return
    for start in range(0, len(cards), per_row):
        cols = st.columns(per_row)
        for offset, c in enumerate(cards[start : start + per_row]):
            with cols[offset]:
                render_result_card(c, key=f"open-{start + offset}-{c['identifier']}")


def render_trend_charts(charts: TrendCharts):
    cols = st.columns(2)
    with cols[0]:
        with card("Test Results Over Time"):
            st.altair_chart(charts.pass_fail, use_container_width=True)
    with cols[1]:
        with card("Average Database Size"):
            st.altair_chart(charts.db_size, use_container_width=True)


def render_list_page(state: DashboardState, settings):
    render_page_header(
        "Kurtosis Sync Test Results",
        "Home / Results",
        format_filter_summary(state.filters),
        export_df=records_frame(state.filtered),
        export_name="sync_test_runs.csv",
    )
    if state.error:
        st.error(state.error)
        return
    if state.store.skipped:
        st.caption(f"{len(state.store.skipped)} result set(s) could not be loaded and were skipped.")

    with card("Summary"):
        render_summary(compute_summary(state.filtered))

    charts: TrendCharts = st.session_state.setdefault("trend_charts", TrendCharts())
    charts.redraw(compute_trends(state.filtered))
    render_trend_charts(charts)

    with card("Test Runs", actions=f"{len(state.filtered)} shown"):
        render_results_grid(build_cards(state.filtered, settings))


def render_detail_page(detail: Dict[str, Any]):
    inject_base_styles()
    st.button("← Back to results", on_click=back_to_list)
    overview = detail["overview"]
    st.markdown(
        f"<div class='app-top-bar'><div class='breadcrumb'>Home / Results / Run</div>"
        f"<div class='page-title'>{html.escape(overview['client_pair'])} "
        f"<span class='status-badge' style='background:{overview['status_color']}'>{html.escape(overview['result'])}</span></div></div>",
        unsafe_allow_html=True,
    )

    with card("Overview"):
        cols = st.columns(4)
        cols[0].metric("Network", overview["network"])
        cols[1].metric("Date", overview["date"])
        cols[2].metric("Duration", overview["duration"])
        cols[3].metric("Result", overview["result"])
        cols = st.columns(2)
        cols[0].metric("EL DB Size", overview["el_db_size"])
        cols[1].metric("CL DB Size", overview["cl_db_size"])

    with card("Timeline"):
        for event in detail["timeline"]:
            st.markdown(
                f"<div><span class='timeline-marker' style='background:{event['color']}'></span>"
                f"<strong>{html.escape(event['label'])}</strong> · {html.escape(event['time'])}</div>",
                unsafe_allow_html=True,
            )

    provenance = detail["provenance"]
    with card("GitHub Actions"):
        if not provenance:
            st.caption("No workflow information recorded for this run.")
        else:
            if provenance.get("run_url"):
                st.markdown(f"**Run:** [{provenance['run_id']}]({provenance['run_url']})")
            if provenance.get("run_number"):
                st.markdown(f"**Run number:** {provenance['run_number']}")
            if provenance.get("workflow"):
                st.markdown(f"**Workflow:** {provenance['workflow']}")
            if provenance.get("actor"):
                st.markdown(f"**Actor:** {provenance['actor']}")
            if provenance.get("ref"):
                st.markdown(f"**Ref:** `{provenance['ref']}`")
            if provenance.get("commit_url"):
                st.markdown(f"**Commit:** [{provenance['sha'][:7]}]({provenance['commit_url']})")

    with card("Configuration"):
        st.table(pd.DataFrame([{"setting": k, "value": v} for k, v in detail["configuration"].items()]))

    with card("Raw Data"):
        st.code(detail["raw"], language="json")


# ---------- UI setup ----------
st.set_page_config(page_title="Kurtosis Sync Test Results", layout="wide")
inject_base_styles()
settings = load_settings()

applied: Dict[str, Optional[str]] = st.session_state.setdefault("applied_predicates", {})

# ----- Sidebar: date range -----
with st.sidebar:
    st.markdown("### Date range")
    range_options = [str(d) for d in DATE_RANGE_PRESETS] + [CUSTOM_RANGE]
    date_range = st.selectbox(
        "Date Range",
        options=range_options,
        index=_select_index(range_options, str(settings.default_days)),
        format_func=_range_label,
    )
    start_date = end_date = None
    if date_range == CUSTOM_RANGE:
        today = date.today()
        start_date = st.date_input("Start date", value=today - timedelta(days=settings.default_days))
        end_date = st.date_input("End date", value=today)

filters = normalize_filters(
    {**applied, "date_range": date_range, "start_date": start_date, "end_date": end_date},
    default_days=settings.default_days,
)
requested_range = resolve_date_range(filters)

state: DashboardState = st.session_state.get("dashboard_state") or DashboardState(filters=filters)
if st.session_state.pop("force_reload", False) or st.session_state.get("loaded_range") != requested_range:
    with st.spinner("Loading test results..."):
        try:
            state = load_dashboard_state(settings, filters)
        except DataUnavailable as exc:
            logger.error("Load failed: %s", exc)
            state = with_load_error(DashboardState(filters=filters), f"Error loading test results: {exc}")
    st.session_state["loaded_range"] = requested_range

# ----- Sidebar: predicate filters -----
with st.sidebar:
    st.markdown("---")
    with st.form("filters"):
        st.markdown("### Filters")
        network_options = [ALL_NETWORKS] + state.store.sorted_networks()
        el_options = [ALL_EL] + state.store.el_clients()
        cl_options = [ALL_CL] + state.store.cl_clients()
        status_options = [ALL_STATUSES] + STATUS_OPTIONS
        network = st.selectbox("Network", network_options, index=_select_index(network_options, applied.get("network")))
        el_client = st.selectbox("EL Client", el_options, index=_select_index(el_options, applied.get("el_client")))
        cl_client = st.selectbox("CL Client", cl_options, index=_select_index(cl_options, applied.get("cl_client")))
        status = st.selectbox("Status", status_options, index=_select_index(status_options, applied.get("status")))
        if st.form_submit_button("Apply Filters"):
            applied = {"network": network, "el_client": el_client, "cl_client": cl_client, "status": status}
            st.session_state["applied_predicates"] = applied
            filters = normalize_filters(
                {**applied, "date_range": date_range, "start_date": start_date, "end_date": end_date},
                default_days=settings.default_days,
            )

state = with_filters(state, filters)

# ----- Router -----
fragment = st.query_params.get(VIEW_PARAM, "")
state = with_fragment(state, fragment)
if parse_fragment(fragment) and state.selected_record is None:
    back_to_list()
st.session_state["dashboard_state"] = state

if state.selected_record is not None:
    render_detail_page(build_detail(state.selected_record, settings))
else:
    render_list_page(state, settings)
