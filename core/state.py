"""Explicit application state with pure update functions.

Rendering (Streamlit or the API) is a projection of a ``DashboardState``; nothing
here touches the UI.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import FrozenSet, List, Optional, Tuple

from core.data import distinct_values
from core.filters import DashboardFilters, DateRange, apply_filters
from core.records import TestRunRecord
from core.router import LIST_VIEW, DetailView, View, find_record, on_history_pop


@dataclass(frozen=True)
class ResultStore:
    records: Tuple[TestRunRecord, ...] = ()
    networks: FrozenSet[str] = frozenset()
    date_range: Optional[DateRange] = None
    skipped: Tuple[Tuple[str, str], ...] = ()

    def sorted_networks(self) -> List[str]:
        return sorted(self.networks)

    def el_clients(self) -> List[str]:
        return distinct_values(self.records, "el_client")

    def cl_clients(self) -> List[str]:
        return distinct_values(self.records, "cl_client")


@dataclass(frozen=True)
class DashboardState:
    store: ResultStore = field(default_factory=ResultStore)
    filters: DashboardFilters = field(default_factory=DashboardFilters)
    filtered: Tuple[TestRunRecord, ...] = ()
    view: View = LIST_VIEW
    error: Optional[str] = None

    @property
    def selected_record(self) -> Optional[TestRunRecord]:
        if not isinstance(self.view, DetailView):
            return None
        return find_record(self.store.records, self.view.identifier)


def with_store(state: DashboardState, store: ResultStore) -> DashboardState:
    """Replace the store wholesale and re-derive the filtered view."""
    return replace(
        state,
        store=store,
        filtered=tuple(apply_filters(store.records, state.filters)),
        error=None,
    )


def with_load_error(state: DashboardState, message: str) -> DashboardState:
    return replace(state, store=ResultStore(), filtered=(), view=LIST_VIEW, error=message)


def with_filters(state: DashboardState, filters: DashboardFilters) -> DashboardState:
    return replace(state, filters=filters, filtered=tuple(apply_filters(state.store.records, filters)))


def with_view(state: DashboardState, view: View) -> DashboardState:
    return replace(state, view=view)


def with_fragment(state: DashboardState, fragment: Optional[str]) -> DashboardState:
    return replace(state, view=on_history_pop(fragment, state.store.records))
