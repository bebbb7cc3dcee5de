from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


ApprovalType = Literal["PLAN", "CONTENT", "BUDGET", "FILE"]
ApprovalStatus = Literal["PENDING", "APPROVED", "REJECTED", "CHANGES_REQUESTED"]


class ApprovalCreate(BaseModel):
    project_id: UUID
    type: ApprovalType
    title: str = Field(min_length=1)
    description: str | None = None
    deadline: datetime | None = None


class ApprovalResubmit(BaseModel):
    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    deadline: datetime | None = None


class ApprovalHistoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    from_status: str | None
    to_status: str
    comment: str | None
    changed_by_id: str
    created_at: datetime


class ApprovalRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    project_id: UUID
    type: ApprovalType
    title: str
    description: str | None
    deadline: datetime | None
    status: ApprovalStatus
    escalation_level: int
    submitted_at: datetime
    escalated_at: datetime | None
    submitted_by_id: str
    responded_at: datetime | None
    responded_by_id: str | None
    response_comment: str | None
    history: list[ApprovalHistoryRead] = Field(default_factory=list)


class EscalationCheckResult(BaseModel):
    checked: int
    escalated: int
