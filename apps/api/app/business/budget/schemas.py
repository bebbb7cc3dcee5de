from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


BudgetEventType = Literal["ALLOC", "SPEND", "ADJUST"]
BudgetEventCategory = Literal["FIXED_AD", "AD_SERVICE", "CONTENT", "DESIGN", "MEDIA", "OTHER"]
BudgetEventStatus = Literal["PENDING", "APPROVED", "REJECTED", "PAID"]
ThresholdLevel = Literal["ok", "warning", "critical"]


class BudgetEventCreate(BaseModel):
    type: BudgetEventType
    category: BudgetEventCategory
    amount: Decimal = Field(ge=Decimal("0"))
    stage: str | None = None
    note: str | None = None
    media_plan_id: UUID | None = None


class BudgetEventRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    project_id: UUID
    media_plan_id: UUID | None
    stage: str | None
    amount: Decimal
    type: BudgetEventType
    category: BudgetEventCategory
    status: BudgetEventStatus
    note: str | None
    created_by: str
    created_at: datetime


class BudgetThreshold(BaseModel):
    level: ThresholdLevel
    percent: int


class BudgetEventStatusUpdate(BaseModel):
    status: BudgetEventStatus
