from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, Field


class ColumnLayoutModel(BaseModel):
    date: int = 0
    location: int = 1
    vehicle: int = 2
    client: int = 3
    type: int = 4
    installation: int = 5
    status: int = 6
    recording: int = 7
    alignment: int = 8
    remarks: int = 9


class PipelineConfigModel(BaseModel):
    columns: ColumnLayoutModel = Field(default_factory=ColumnLayoutModel)
    default_vehicle_type: str = "Bus"
    search_limit: int = 50
    issue_window: int = 7
    daily_tabs_only: bool = True


class TabModel(BaseModel):
    name: str = ""
    values: List[List[Any]] = Field(default_factory=list)


class BatchModel(BaseModel):
    tabs: List[TabModel] = Field(default_factory=list)
    config: Optional[PipelineConfigModel] = None


class ValueRangeModel(BaseModel):
    range: str = ""
    values: List[List[Any]] = Field(default_factory=list)


class SheetsBatchModel(BaseModel):
    valueRanges: List[ValueRangeModel] = Field(default_factory=list)
    sheet_titles: List[str] = Field(default_factory=list)
    config: Optional[PipelineConfigModel] = None


class MetaListResponse(BaseModel):
    values: List[str]
