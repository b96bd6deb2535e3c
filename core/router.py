"""List/detail view state, synchronized with a ``run/<id>`` navigation fragment.

    [List] --select(record)--> [Detail(id)]
    [Detail(id)] --back / pop without run fragment--> [List]
    [List] --pop with run fragment--> [Detail(id)]
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Union

from core.records import TestRunRecord


logger = logging.getLogger(__name__)

RUN_FRAGMENT_PREFIX = "run/"


@dataclass(frozen=True)
class ListView:
    pass


@dataclass(frozen=True)
class DetailView:
    identifier: str


View = Union[ListView, DetailView]

LIST_VIEW = ListView()


def fragment_for(view: View) -> str:
    if isinstance(view, DetailView):
        return f"{RUN_FRAGMENT_PREFIX}{view.identifier}"
    return ""


def parse_fragment(fragment: Optional[str]) -> Optional[str]:
    if not fragment:
        return None
    frag = fragment.lstrip("#")
    if not frag.startswith(RUN_FRAGMENT_PREFIX):
        return None
    identifier = frag[len(RUN_FRAGMENT_PREFIX):].strip()
    return identifier or None


def find_record(records: Sequence[TestRunRecord], identifier: str) -> Optional[TestRunRecord]:
    """Resolve by run id, then run number, then composite key; the first match of a tier wins."""
    for attr in ("run_id", "run_number", "composite_key"):
        found = [r for r in records if getattr(r, attr) == identifier]
        if found:
            if len(found) > 1:
                logger.warning("%d runs share %s %r; showing the first", len(found), attr, identifier)
            return found[0]
    return None


def select(record: TestRunRecord) -> DetailView:
    return DetailView(identifier=record.identifier)


def back() -> ListView:
    return LIST_VIEW


def open_run(identifier: Optional[str], records: Sequence[TestRunRecord]) -> View:
    """Detail view for ``identifier`` if it resolves against the full record list, else the list view."""
    if not identifier:
        return LIST_VIEW
    if find_record(records, identifier) is None:
        logger.warning("No run matches %r; returning to the list view", identifier)
        return LIST_VIEW
    return DetailView(identifier=identifier)


def on_history_pop(fragment: Optional[str], records: Sequence[TestRunRecord]) -> View:
    return open_run(parse_fragment(fragment), records)
