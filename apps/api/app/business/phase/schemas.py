from __future__ import annotations

from datetime import date
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PhaseItemCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str | None = None
    weight: float = Field(default=5, ge=0)
    pic: str | None = None
    support: str | None = None
    expected_output: str | None = None


class PhaseItemUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    weight: float | None = Field(default=None, ge=0)
    is_complete: bool | None = None
    pic: str | None = None
    support: str | None = None
    expected_output: str | None = None


class PhaseUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    start_date: date | None = None
    end_date: date | None = None


class PhaseItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    phase_id: UUID
    name: str
    description: str | None
    weight: float
    is_complete: bool
    order_index: int
    pic: str | None
    support: str | None
    expected_output: str | None


class PhaseRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    project_id: UUID
    phase_type: str
    name: str
    weight: float
    progress: int
    order_index: int
    start_date: date | None
    end_date: date | None
    items: list[PhaseItemRead] = Field(default_factory=list)
