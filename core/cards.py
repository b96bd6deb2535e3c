from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Sequence

from core.data import (
    NA_TEXT,
    format_date,
    format_duration,
    format_time,
    format_timestamp,
    status_color,
)
from core.records import TestRunRecord
from core.settings import SourceSettings


DEFAULT_TEST_TYPE = "standard"
START_MARKER_COLOR = "#0366d6"


def _or_na(value: Optional[str]) -> str:
    return value if value else NA_TEXT


def build_card(record: TestRunRecord, settings: SourceSettings) -> Dict[str, Any]:
    gh = record.github
    run_id = record.run_id
    return {
        "identifier": record.identifier,
        "client_pair": record.client_pair,
        "test_type": record.test_type or DEFAULT_TEST_TYPE,
        "network": record.network,
        "start_date": format_date(record.start_time),
        "start_time": format_time(record.start_time),
        "duration": format_duration(record.duration),
        "workflow": _or_na(gh.workflow if gh else None),
        "actor": _or_na(gh.actor if gh else None),
        "run_id": _or_na(run_id),
        "run_url": settings.run_url(run_id) if run_id else None,
        "el_db_size": _or_na(record.el_db_size),
        "cl_db_size": _or_na(record.cl_db_size),
        "status": record.result or "unknown",
        "status_color": status_color(record.result),
    }


def build_cards(records: Sequence[TestRunRecord], settings: SourceSettings) -> List[Dict[str, Any]]:
    return [build_card(r, settings) for r in records]


def _timeline(record: TestRunRecord) -> List[Dict[str, Any]]:
    events = [
        {
            "label": "Test started",
            "time": format_timestamp(record.start_time),
            "color": START_MARKER_COLOR,
        }
    ]
    if record.end_time is not None:
        events.append(
            {
                "label": f"Test finished ({record.result or 'unknown'})",
                "time": format_timestamp(record.end_time),
                "color": status_color(record.result),
            }
        )
    return events


def build_detail(record: TestRunRecord, settings: SourceSettings) -> Dict[str, Any]:
    gh = record.github
    provenance: Dict[str, Any] = {}
    if gh is not None:
        provenance = {
            "run_id": gh.run_id,
            "run_url": settings.run_url(gh.run_id) if gh.run_id else None,
            "run_number": gh.run_number,
            "actor": gh.actor,
            "workflow": gh.workflow,
            "ref": gh.ref,
            "sha": gh.sha,
            "commit_url": settings.commit_url(gh.sha) if gh.sha else None,
        }
    return {
        "identifier": record.identifier,
        "overview": {
            "client_pair": record.client_pair,
            "el_client": record.el_client,
            "cl_client": record.cl_client,
            "network": record.network,
            "date": record.date,
            "result": record.result or "unknown",
            "status_color": status_color(record.result),
            "duration": format_duration(record.duration),
            "el_db_size": _or_na(record.el_db_size),
            "cl_db_size": _or_na(record.cl_db_size),
        },
        "timeline": _timeline(record),
        "provenance": provenance,
        "configuration": {
            "test_type": record.test_type or DEFAULT_TEST_TYPE,
            "enclave_name": _or_na(record.enclave_name),
            "genesis_sync": NA_TEXT if record.genesis_sync is None else str(record.genesis_sync),
            "saved_at": _or_na(record.saved_at),
        },
        "raw": json.dumps(record.raw, indent=2, default=str),
    }
