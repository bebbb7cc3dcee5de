from __future__ import annotations

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import CheckConstraint, Date, DateTime, Float, ForeignKey, Index, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProjectPhase(Base):
    __tablename__ = "project_phase"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("project.id", ondelete="CASCADE"),
        nullable=False,
    )
    phase_type: Mapped[str] = mapped_column(String(32), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    weight: Mapped[float] = mapped_column(Float, nullable=False)
    progress: Mapped[int] = mapped_column(nullable=False, default=0, server_default="0")
    order_index: Mapped[int] = mapped_column(nullable=False, default=0, server_default="0")
    start_date: Mapped[date | None] = mapped_column(Date(), nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date(), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    items: Mapped[list[ProjectPhaseItem]] = relationship(
        "ProjectPhaseItem",
        back_populates="phase",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ProjectPhaseItem.order_index",
    )

    __table_args__ = (
        UniqueConstraint("project_id", "phase_type", name="uq_project_phase_type"),
        CheckConstraint("weight >= 0", name="ck_project_phase_weight_nonnegative"),
        CheckConstraint("progress >= 0 AND progress <= 100", name="ck_project_phase_progress_range"),
    )


class ProjectPhaseItem(Base):
    __tablename__ = "project_phase_item"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    phase_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("project_phase.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    weight: Mapped[float] = mapped_column(Float, nullable=False, default=5, server_default="5")
    is_complete: Mapped[bool] = mapped_column(nullable=False, default=False, server_default="false")
    order_index: Mapped[int] = mapped_column(nullable=False, default=0, server_default="0")
    pic: Mapped[str | None] = mapped_column(String(128), nullable=True)
    support: Mapped[str | None] = mapped_column(String(128), nullable=True)
    expected_output: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    phase: Mapped[ProjectPhase] = relationship("ProjectPhase", back_populates="items")

    __table_args__ = (
        CheckConstraint("weight >= 0", name="ck_project_phase_item_weight_nonnegative"),
        Index("ix_project_phase_item_phase_order", "phase_id", "order_index"),
    )
