from typing import Any, Callable, Dict

import pytest

from core.records import TestRunRecord
from core.settings import SourceSettings


@pytest.fixture(scope="session")
def settings() -> SourceSettings:
    return SourceSettings(
        repo="ethpandaops/kurtosis-sync-test",
        branch="data",
        raw_base_url="https://raw.example.test",
        web_base_url="https://github.com",
    )


@pytest.fixture(scope="function")
def make_record() -> Callable[..., TestRunRecord]:
    def _make(**overrides: Any) -> TestRunRecord:
        metadata: Dict[str, Any] = {
            "el_client": "geth",
            "cl_client": "lighthouse",
            "start_time": 1_700_000_000,
            "result": "success",
        }
        date = overrides.pop("date", "2024-01-01")
        network = overrides.pop("network", "hoodi")
        metadata.update(overrides)
        record = TestRunRecord.from_metadata(metadata, date=date, network=network)
        assert record is not None
        return record

    return _make


@pytest.fixture(scope="function")
def mixed_records(make_record: Callable[..., TestRunRecord]) -> list:
    return [
        make_record(date="2024-01-01", network="hoodi", start_time=100, result="success", el_db_size="10GB", github={"run_id": 11, "run_number": 1}),
        make_record(date="2024-01-01", network="sepolia", start_time=300, result="failure", el_client="nethermind", cl_db_size="4GB"),
        make_record(date="2024-01-02", network="hoodi", start_time=200, result="success", cl_client="teku", el_db_size="N/A"),
        make_record(date="2024-01-03", network="hoodi", start_time=300, result="timeout", el_db_size="20GB", github={"run_id": 33, "run_number": 3}),
    ]
