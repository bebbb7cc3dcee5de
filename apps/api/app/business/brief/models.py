from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, JSON, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StrategicBrief(Base):
    __tablename__ = "strategic_brief"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("project.id", ondelete="CASCADE"),
        nullable=False,
    )
    pipeline_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("sales_pipeline.id", ondelete="SET NULL"),
        nullable=True,
    )
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="DRAFT", server_default="DRAFT")
    completion_pct: Mapped[int] = mapped_column(nullable=False, default=0, server_default="0")
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_by: Mapped[str | None] = mapped_column(String(128), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    sections: Mapped[list[BriefSection]] = relationship(
        "BriefSection",
        back_populates="brief",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="BriefSection.section_num",
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('DRAFT','SUBMITTED','REVISION_REQUESTED','APPROVED')",
            name="ck_strategic_brief_status",
        ),
        CheckConstraint("completion_pct >= 0 AND completion_pct <= 100", name="ck_strategic_brief_completion_range"),
    )


class BriefSection(Base):
    __tablename__ = "brief_section"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    brief_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("strategic_brief.id", ondelete="CASCADE"),
        nullable=False,
    )
    section_num: Mapped[int] = mapped_column(nullable=False)
    section_key: Mapped[str] = mapped_column(String(64), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    data: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    is_complete: Mapped[bool] = mapped_column(nullable=False, default=False, server_default="false")
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    brief: Mapped[StrategicBrief] = relationship("StrategicBrief", back_populates="sections")

    __table_args__ = (UniqueConstraint("brief_id", "section_num", name="uq_brief_section_num"),)
