import pytest

from core.data import format_duration, format_size_gb, parse_db_size, round_half_up
from core.records import TestRunRecord


def test_from_metadata_decorates_with_catalog_entry() -> None:
    record = TestRunRecord.from_metadata(
        {"el_client": "geth", "cl_client": "prysm", "start_time": "1700000000", "network": "stale", "date": "1999-01-01"},
        date="2024-05-01",
        network="hoodi",
    )
    assert record is not None
    assert record.date == "2024-05-01"
    assert record.network == "hoodi"
    assert record.raw["network"] == "hoodi"
    assert record.start_time == 1_700_000_000.0
    assert record.github is None
    assert record.run_id is None


@pytest.mark.parametrize("start_time", [None, "soon", True])
def test_from_metadata_skips_non_numeric_start_time(start_time: object) -> None:
    assert TestRunRecord.from_metadata({"start_time": start_time}, date="2024-05-01", network="hoodi") is None


def test_identifier_prefers_run_id(make_record) -> None:
    with_run = make_record(github={"run_id": 12345, "run_number": 7, "actor": "octocat"})
    without_run = make_record(github={"run_number": 7})
    assert with_run.run_id == "12345"
    assert with_run.identifier == "12345"
    assert without_run.identifier == "2024-01-01-hoodi-geth-lighthouse"
    assert without_run.client_pair == "geth + lighthouse"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("12.5GB", 12.5),
        ("  3GB", 3.0),
        ("0.25 GB", 0.25),
        ("N/A", None),
        ("", None),
        (None, None),
        ("GB", None),
        ("unknown", None),
        ("1e999GB", None),
        ("-1e999GB", None),
    ],
)
def test_parse_db_size(raw: object, expected: object) -> None:
    assert parse_db_size(raw) == expected


def test_formatting_helpers() -> None:
    assert round_half_up(2.5) == 3.0
    assert round_half_up(12.25, 1) == 12.3
    assert round_half_up(float("inf"), 1) is None
    assert format_size_gb(12.5) == "12.5 GB"
    assert format_size_gb(None) == "N/A"
    assert format_duration(None) == "N/A"
    assert format_duration(0) == "N/A"
    assert format_duration(360.0) == "360s"
    assert format_duration(12.5) == "12.5s"
