from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional


logger = logging.getLogger(__name__)


def _opt_str(value: object) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def _opt_float(value: object) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class GithubInfo:
    run_id: Optional[str] = None
    run_number: Optional[str] = None
    actor: Optional[str] = None
    workflow: Optional[str] = None
    sha: Optional[str] = None
    ref: Optional[str] = None

    @classmethod
    def from_raw(cls, raw: object) -> Optional["GithubInfo"]:
        if not isinstance(raw, Mapping):
            return None
        return cls(
            run_id=_opt_str(raw.get("run_id")),
            run_number=_opt_str(raw.get("run_number")),
            actor=_opt_str(raw.get("actor")),
            workflow=_opt_str(raw.get("workflow")),
            sha=_opt_str(raw.get("sha")),
            ref=_opt_str(raw.get("ref")),
        )


@dataclass(frozen=True)
class TestRunRecord:
    """One sync test execution, as published in a per-(date, network) index."""

    __test__ = False  # not a pytest class

    date: str
    network: str
    el_client: str
    cl_client: str
    start_time: float
    result: Optional[str] = None
    end_time: Optional[float] = None
    duration: Optional[float] = None
    github: Optional[GithubInfo] = None
    el_db_size: Optional[str] = None
    cl_db_size: Optional[str] = None
    test_type: Optional[str] = None
    enclave_name: Optional[str] = None
    genesis_sync: Optional[Any] = None
    saved_at: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False, repr=False)

    @classmethod
    def from_metadata(cls, metadata: Mapping[str, Any], *, date: str, network: str) -> Optional["TestRunRecord"]:
        """Normalize an index ``metadata`` entry; the catalog's date/network override the entry's own.

        Returns None when ``start_time`` is missing or not numeric.
        """
        raw = {**dict(metadata), "date": date, "network": network}
        start_time = _opt_float(raw.get("start_time"))
        if start_time is None:
            logger.warning("Skipping %s/%s run without a numeric start_time: %r", date, network, raw.get("start_time"))
            return None
        return cls(
            date=date,
            network=network,
            el_client=str(raw.get("el_client") or ""),
            cl_client=str(raw.get("cl_client") or ""),
            start_time=start_time,
            result=_opt_str(raw.get("result")),
            end_time=_opt_float(raw.get("end_time")),
            duration=_opt_float(raw.get("duration")),
            github=GithubInfo.from_raw(raw.get("github")),
            el_db_size=_opt_str(raw.get("el_db_size")),
            cl_db_size=_opt_str(raw.get("cl_db_size")),
            test_type=_opt_str(raw.get("test_type")),
            enclave_name=_opt_str(raw.get("enclave_name")),
            genesis_sync=raw.get("genesis_sync"),
            saved_at=_opt_str(raw.get("saved_at")),
            raw=raw,
        )

    @property
    def run_id(self) -> Optional[str]:
        return self.github.run_id if self.github is not None else None

    @property
    def run_number(self) -> Optional[str]:
        return self.github.run_number if self.github is not None else None

    @property
    def composite_key(self) -> str:
        return f"{self.date}-{self.network}-{self.el_client}-{self.cl_client}"

    @property
    def identifier(self) -> str:
        """Detail-view identifier: the workflow run id when known, else the composite key."""
        return self.run_id or self.composite_key

    @property
    def client_pair(self) -> str:
        return f"{self.el_client} + {self.cl_client}"
