"""Report manifest API schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ReportExportModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    run_id: str = Field(..., alias="runId")
    run_type: str = Field(..., alias="runType")
    file_name: str = Field(..., alias="fileName")
    file_type: str = Field(..., alias="fileType")
    size_bytes: int = Field(..., alias="sizeBytes")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    author: Optional[str] = None
    run_label: Optional[str] = Field(None, alias="runLabel")
    description: Optional[str] = None
    download_path: str = Field(..., alias="downloadPath")


class ReportRunModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    run_type: str = Field(..., alias="runType")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    author: Optional[str] = None
    run_label: Optional[str] = Field(None, alias="runLabel")
    operator_id: Optional[str] = Field(None, alias="operatorId")
    window_start: Optional[str] = Field(None, alias="windowStart")
    window_end: Optional[str] = Field(None, alias="windowEnd")
    row_count: int = Field(0, alias="rowCount")
    status: str
