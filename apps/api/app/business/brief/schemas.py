from __future__ import annotations

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


BriefStatus = Literal["DRAFT", "SUBMITTED", "REVISION_REQUESTED", "APPROVED"]


class BriefSectionUpdate(BaseModel):
    data: dict[str, Any] | None = None
    is_complete: bool | None = None


class BriefSectionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    brief_id: UUID
    section_num: int
    section_key: str
    title: str
    data: dict[str, Any] | None
    is_complete: bool


class BriefRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    project_id: UUID
    pipeline_id: UUID | None
    status: BriefStatus
    completion_pct: int
    submitted_at: datetime | None
    approved_at: datetime | None
    approved_by: str | None
    sections: list[BriefSectionRead] = Field(default_factory=list)
