from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel


class DashboardFiltersModel(BaseModel):
    network: Optional[str] = None
    el_client: Optional[str] = None
    cl_client: Optional[str] = None
    status: Optional[str] = None
    date_range: Union[int, str, None] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class MetaListResponse(BaseModel):
    values: List[str]
