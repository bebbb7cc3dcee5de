from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


TeamRole = Literal["NVKD", "PM", "PLANNER"]


class ProjectBudgetRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    project_id: UUID
    total_budget: Decimal
    monthly_budget: Decimal
    spent_amount: Decimal
    fixed_ad_fee: Decimal
    ad_service_fee: Decimal
    content_fee: Decimal
    design_fee: Decimal
    media_fee: Decimal
    other_fee: Decimal


class ProjectTeamRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    project_id: UUID
    user_id: str
    role: str
    is_primary: bool


class ProjectRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    name: str
    product_type: str | None
    stage: str
    status: str
    stage_progress: int
    total_budget: Decimal
    spent_amount: Decimal
    created_at: datetime
    budget: ProjectBudgetRead | None = None
    team: list[ProjectTeamRead] = Field(default_factory=list)
