from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.business.pipeline.stages import PipelineStage


ClientTier = Literal["A", "B", "C", "D"]

# Sale fields that may be omitted from a patch but never cleared.
NON_NULLABLE_SALE_FIELDS = frozenset({"project_name", "total_budget"})


class PipelineCreate(BaseModel):
    project_name: str = Field(min_length=1)
    client_type: str | None = None
    product_type: str | None = None
    license_link: str | None = None
    campaign_objective: str | None = None
    initial_goal: str | None = None
    total_budget: Decimal = Field(default=Decimal("0"), ge=Decimal("0"))
    monthly_budget: Decimal | None = Field(default=None, ge=Decimal("0"))
    fixed_ad_fee: Decimal | None = Field(default=None, ge=Decimal("0"))
    ad_service_fee: Decimal | None = Field(default=None, ge=Decimal("0"))
    content_fee: Decimal | None = Field(default=None, ge=Decimal("0"))
    design_fee: Decimal | None = Field(default=None, ge=Decimal("0"))
    media_fee: Decimal | None = Field(default=None, ge=Decimal("0"))
    other_fee: Decimal | None = Field(default=None, ge=Decimal("0"))
    upsell_opportunity: str | None = None


class PipelineSaleUpdate(BaseModel):
    project_name: str | None = Field(default=None, min_length=1)
    client_type: str | None = None
    product_type: str | None = None
    license_link: str | None = None
    campaign_objective: str | None = None
    initial_goal: str | None = None
    total_budget: Decimal | None = Field(default=None, ge=Decimal("0"))
    monthly_budget: Decimal | None = Field(default=None, ge=Decimal("0"))
    fixed_ad_fee: Decimal | None = Field(default=None, ge=Decimal("0"))
    ad_service_fee: Decimal | None = Field(default=None, ge=Decimal("0"))
    content_fee: Decimal | None = Field(default=None, ge=Decimal("0"))
    design_fee: Decimal | None = Field(default=None, ge=Decimal("0"))
    media_fee: Decimal | None = Field(default=None, ge=Decimal("0"))
    other_fee: Decimal | None = Field(default=None, ge=Decimal("0"))
    upsell_opportunity: str | None = None

    @model_validator(mode="after")
    def reject_null_required_fields(self) -> "PipelineSaleUpdate":
        for name in NON_NULLABLE_SALE_FIELDS & self.model_fields_set:
            if getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class PipelineEvaluationUpdate(BaseModel):
    pm_id: str | None = None
    planner_id: str | None = None
    cost_nsqc: Decimal | None = Field(default=None, ge=Decimal("0"))
    cost_design: Decimal | None = Field(default=None, ge=Decimal("0"))
    cost_media: Decimal | None = Field(default=None, ge=Decimal("0"))
    cost_kol: Decimal | None = Field(default=None, ge=Decimal("0"))
    cost_other: Decimal | None = Field(default=None, ge=Decimal("0"))
    client_tier: ClientTier | None = None
    market_size: str | None = None
    competition_level: str | None = None
    product_usp: str | None = None
    average_score: Decimal | None = Field(default=None, ge=Decimal("0"), le=Decimal("10"))
    audience_size: str | None = None
    product_lifecycle: str | None = None
    scale_potential: str | None = None


class WeeklyNote(BaseModel):
    week: int
    date: datetime
    note: str
    author_id: str


class PipelineRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    project_name: str
    client_type: str | None
    product_type: str | None
    total_budget: Decimal
    monthly_budget: Decimal | None
    cost_nsqc: Decimal | None
    cost_design: Decimal | None
    cost_media: Decimal | None
    cost_kol: Decimal | None
    cost_other: Decimal | None
    cogs: Decimal
    gross_profit: Decimal
    profit_margin: Decimal
    stage: PipelineStage
    current_stage: str
    decision: str
    decision_date: datetime | None
    decision_note: str | None
    decided_by_id: str | None
    weekly_notes: list[WeeklyNote]
    nvkd_id: str
    pm_id: str | None
    planner_id: str | None
    project_id: UUID | None
    created_at: datetime


class PipelineAcceptResult(BaseModel):
    pipeline: PipelineRead
    project_id: UUID
    project_code: str
    team_size: int
    phase_count: int
    brief_id: UUID
