from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)

ENV_PREFIX = "SYNC_DASHBOARD_"
DEFAULT_DAYS = 3


class SourceSettings(BaseSettings):
    """Where the published results live, read from ``SYNC_DASHBOARD_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_ignore_empty=True,
        frozen=True,
        extra="ignore",
        str_strip_whitespace=True,
    )
    repo: str = "ethpandaops/kurtosis-sync-test"
    branch: str = "data"
    raw_base_url: str = "https://raw.githubusercontent.com"
    web_base_url: str = "https://github.com"
    default_days: int = DEFAULT_DAYS
    fetch_timeout: Optional[float] = None

    @field_validator("default_days", mode="before")
    @classmethod
    def _valid_default_days(cls, value: Any) -> int:
        try:
            return max(1, int(value))
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid %sDEFAULT_DAYS=%r", ENV_PREFIX, value)
            return DEFAULT_DAYS

    @field_validator("fetch_timeout", mode="before")
    @classmethod
    def _valid_fetch_timeout(cls, value: Any) -> Optional[float]:
        if value is None:
            return None
        try:
            timeout = float(value)
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid %sFETCH_TIMEOUT=%r", ENV_PREFIX, value)
            return None
        # Non-positive means "wait forever".
        return timeout if timeout > 0 else None

    @property
    def data_root(self) -> str:
        return f"{self.raw_base_url.rstrip('/')}/{self.repo}/{self.branch}"

    def catalog_url(self) -> str:
        return f"{self.data_root}/catalog.json"

    def index_url(self, date: str, network: str) -> str:
        return f"{self.data_root}/results/{date}/{network}/index.json"

    def run_url(self, run_id: object) -> str:
        return f"{self.web_base_url.rstrip('/')}/{self.repo}/actions/runs/{run_id}"

    def commit_url(self, sha: str) -> str:
        return f"{self.web_base_url.rstrip('/')}/{self.repo}/commit/{sha}"


def load_settings() -> SourceSettings:
    return SourceSettings()
