from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, JSON, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.business.project.models import Project
from app.core.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Pipeline(Base):
    __tablename__ = "sales_pipeline"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    project_name: Mapped[str] = mapped_column(String(255), nullable=False)
    client_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    product_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    license_link: Mapped[str | None] = mapped_column(Text, nullable=True)
    campaign_objective: Mapped[str | None] = mapped_column(Text, nullable=True)
    initial_goal: Mapped[str | None] = mapped_column(Text, nullable=True)
    upsell_opportunity: Mapped[str | None] = mapped_column(Text, nullable=True)

    # sales-owned budget inputs
    total_budget: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False, default=Decimal("0"), server_default="0")
    monthly_budget: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    fixed_ad_fee: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    ad_service_fee: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    content_fee: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    design_fee: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    media_fee: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    other_fee: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)

    # PM / planner evaluation inputs
    cost_nsqc: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    cost_design: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    cost_media: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    cost_kol: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    cost_other: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    client_tier: Mapped[str | None] = mapped_column(String(32), nullable=True)
    market_size: Mapped[str | None] = mapped_column(String(64), nullable=True)
    competition_level: Mapped[str | None] = mapped_column(String(64), nullable=True)
    product_usp: Mapped[str | None] = mapped_column(Text, nullable=True)
    average_score: Mapped[Decimal | None] = mapped_column(Numeric(6, 2), nullable=True)
    audience_size: Mapped[str | None] = mapped_column(String(64), nullable=True)
    product_lifecycle: Mapped[str | None] = mapped_column(String(64), nullable=True)
    scale_potential: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # derived, written only by the financial calculator
    cogs: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False, default=Decimal("0"), server_default="0")
    gross_profit: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False, default=Decimal("0"), server_default="0")
    profit_margin: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"), server_default="0")

    stage: Mapped[str] = mapped_column(String(32), nullable=False, default="LEAD", server_default="LEAD")
    current_stage: Mapped[str] = mapped_column(String(32), nullable=False, default="PLANNING", server_default="PLANNING")
    decision: Mapped[str] = mapped_column(String(32), nullable=False, default="PENDING", server_default="PENDING")
    decision_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    decision_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    decided_by_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    weekly_notes: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    nvkd_id: Mapped[str] = mapped_column(String(128), nullable=False)
    pm_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    planner_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    project_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("project.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    project: Mapped[Project | None] = relationship("Project")

    __table_args__ = (
        CheckConstraint(
            "stage IN ('LEAD','QUALIFIED','EVALUATION','NEGOTIATION','WON','LOST')",
            name="ck_sales_pipeline_stage",
        ),
        CheckConstraint("decision IN ('PENDING','ACCEPTED','DECLINED')", name="ck_sales_pipeline_decision"),
        Index("ix_sales_pipeline_stage_decision", "stage", "decision"),
        Index("ix_sales_pipeline_nvkd", "nvkd_id"),
    )
